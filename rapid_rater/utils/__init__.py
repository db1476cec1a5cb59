# rapid_rater/utils/__init__.py
"""
Rapid Rater - Utilities Package

Common helpers used across the quote bot.
"""

from .llm_output import strip_code_fences, parse_json_object

__all__ = ['strip_code_fences', 'parse_json_object']
