"""
Rapid Rater Quote Bot Package
"""

__version__ = "0.1.0"
