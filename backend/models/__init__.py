"""Models package for the category manager."""
from backend.models.schema import Base, Category, generate_id

__all__ = ['Base', 'Category', 'generate_id']
