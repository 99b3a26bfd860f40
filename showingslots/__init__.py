"""
Available showing slot generation for real-estate booking pages.
"""

__version__ = "0.1.0"
