"""
NoPonto desktop application: entry point and logging.
"""

__all__ = [
    "main",
    "logger",
]
