"""Chat Interfaces"""
