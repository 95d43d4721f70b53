"""
Voice server version information.

Semantic versioning: MAJOR.MINOR.PATCH
"""

__version__ = "1.0.0"
