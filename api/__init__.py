"""
FastAPI application for the category manager.

This package contains the REST API for managing categories, importing
them from spreadsheets and reading the region directory.
"""

__version__ = "1.0.0"
