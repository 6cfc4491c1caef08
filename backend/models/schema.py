"""
SQLAlchemy models for the category manager.

Categories are stored one row per category. Subcategories have no
lifecycle of their own, so they are embedded in the parent row as a JSON
document (JSONB on PostgreSQL) and replaced as a whole on update.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, TIMESTAMP, JSON, Index, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Portable JSON column that becomes JSONB on PostgreSQL
JSONDocument = JSON().with_variant(JSONB(), 'postgresql')


def generate_id() -> str:
    """Generate a fresh public identifier."""
    return str(uuid.uuid4())


class Category(Base):
    """A named grouping with an ordered list of subcategories."""

    __tablename__ = 'categories'
    __table_args__ = (
        Index('idx_categories_created_at', 'created_at'),
        {'comment': 'Product categories with embedded subcategories'}
    )

    id = Column(
        String(36),
        primary_key=True,
        default=generate_id,
        nullable=False,
        comment='Public category identifier (uuid4)'
    )
    name = Column(
        String(255),
        nullable=False,
        unique=True,
        comment='Category name, trimmed, unique (case-sensitive)'
    )
    subcategories = Column(
        JSONDocument,
        default=list,
        nullable=False,
        comment='Ordered array of {id, name} subcategory documents'
    )
    excel_file = Column(
        JSONDocument,
        nullable=True,
        comment='Source spreadsheet metadata: name, path, uploadedAt'
    )
    created_at = Column(
        TIMESTAMP,
        default=datetime.utcnow,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Creation timestamp'
    )
    updated_at = Column(
        TIMESTAMP,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        server_default=text('CURRENT_TIMESTAMP'),
        nullable=False,
        comment='Last modification timestamp'
    )

    def to_dict(self) -> dict:
        """Serialise to the wire representation."""
        return {
            'id': self.id,
            'name': self.name,
            'subcategories': [dict(sub) for sub in (self.subcategories or [])],
            'excel_file': dict(self.excel_file) if self.excel_file else None,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
        }

    def __repr__(self):
        return (f"<Category(id='{self.id}', name='{self.name}', "
                f"subcategories={len(self.subcategories or [])})>")
