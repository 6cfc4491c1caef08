"""
Service layer for the category manager.

This package contains framework-agnostic business logic that can be used
by the API, scripts, or any other interface.
"""

__version__ = "1.0.0"
