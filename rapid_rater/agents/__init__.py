"""Conversation Agents"""
