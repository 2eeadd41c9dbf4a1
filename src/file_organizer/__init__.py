"""
Rule-based organizer for files and folders.
"""

__version__ = "1.0.0"
