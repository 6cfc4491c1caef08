"""
Category Service - Framework-agnostic CRUD over stored categories.

The service owns no connection of its own: callers construct it with a
SQLAlchemy session (one per request in the API, one per command in
scripts) and the service commits or rolls back that session.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.schema import Category, generate_id
from services.exceptions import (
    DuplicateNameError, NotFoundError, UnexpectedError, ValidationError
)

logger = logging.getLogger(__name__)

# Fields a partial update may touch
UPDATABLE_FIELDS = ('name', 'subcategories', 'excel_file')


def normalize_name(value: Any, field: str = 'name') -> str:
    """Trim a name and reject empty values."""
    if value is None:
        raise ValidationError(f"Category {field} is required", details={'field': field})
    if not isinstance(value, str):
        raise ValidationError(f"Category {field} must be a string", details={'field': field})

    name = value.strip()
    if not name:
        raise ValidationError(f"Category {field} is required", details={'field': field})
    return name


def build_subcategories(items: Optional[Iterable[Any]]) -> List[Dict[str, str]]:
    """
    Normalise a subcategory list for storage.

    Each item keeps its id when one is supplied, otherwise a fresh id is
    generated. Names are trimmed. Ids must be unique within the list;
    names may repeat.
    """
    subcategories = []
    seen_ids = set()

    for index, item in enumerate(items or []):
        if hasattr(item, 'model_dump'):
            item = item.model_dump(exclude_none=True)
        if not isinstance(item, dict):
            raise ValidationError(
                "Subcategories must be objects with a name",
                details={'index': index}
            )

        name = item.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                "Subcategory name is required",
                details={'index': index}
            )

        sub_id = item.get('id') or generate_id()
        if sub_id in seen_ids:
            raise ValidationError(
                f"Duplicate subcategory id '{sub_id}'",
                details={'index': index, 'id': sub_id}
            )
        seen_ids.add(sub_id)

        subcategories.append({'id': str(sub_id), 'name': name.strip()})

    return subcategories


class CategoryService:
    """
    CRUD operations over the categories table.

    Enforces name uniqueness and subcategory shape before anything is
    written, and translates store failures into domain exceptions.
    """

    def __init__(self, db_session: Session):
        """
        Initialize category service.

        Args:
            db_session: SQLAlchemy database session
        """
        self.session = db_session

    def list_categories(self) -> List[Category]:
        """Return all categories, newest first."""
        return self.session.query(Category)\
            .order_by(Category.created_at.desc(), Category.name)\
            .all()

    def get_category(self, category_id: str) -> Category:
        """Get a category by id or raise NotFoundError."""
        category = self.session.query(Category).filter_by(id=category_id).first()
        if not category:
            raise NotFoundError.for_id('Category', category_id)
        return category

    def find_existing_names(self, names: Iterable[str],
                            exclude_id: Optional[str] = None) -> List[str]:
        """Return which of the given names are already stored."""
        names = list(names)
        if not names:
            return []

        query = self.session.query(Category.name).filter(Category.name.in_(names))
        if exclude_id:
            query = query.filter(Category.id != exclude_id)

        existing = {row[0] for row in query.all()}
        return [name for name in names if name in existing]

    def create_category(self, name: Any,
                        subcategories: Optional[Iterable[Any]] = None) -> Category:
        """
        Create a new category.

        Args:
            name: Category name (trimmed)
            subcategories: Optional list of {name, id?} items

        Returns:
            The persisted Category

        Raises:
            ValidationError: If the name or a subcategory is invalid
            DuplicateNameError: If a category with this name already exists
        """
        name = normalize_name(name)
        subs = build_subcategories(subcategories)

        if self.find_existing_names([name]):
            raise DuplicateNameError([name])

        category = Category(id=generate_id(), name=name, subcategories=subs)
        self.session.add(category)
        self._commit([name])

        logger.info(f"Created category {category.id} '{name}' "
                    f"({len(subs)} subcategories)")
        return category

    def bulk_create(self, categories: List[Category]) -> List[Category]:
        """
        Insert a batch of categories in a single transaction.

        Either every category is persisted or none is.

        Raises:
            DuplicateNameError: If any name repeats within the batch or
                already exists in the store
        """
        if not categories:
            return []

        names = [category.name for category in categories]
        repeated = sorted({name for name in names if names.count(name) > 1})
        if repeated:
            raise DuplicateNameError(repeated)

        existing = self.find_existing_names(names)
        if existing:
            raise DuplicateNameError(existing)

        self.session.add_all(categories)
        self._commit(names)

        logger.info(f"Bulk inserted {len(categories)} categories")
        return categories

    def update_category(self, category_id: str, fields: Dict[str, Any]) -> Category:
        """
        Apply a shallow partial update.

        `subcategories`, when present, replaces the whole list. Unknown
        fields are ignored.

        Raises:
            NotFoundError: If no category has this id
            ValidationError: If a field is invalid
            DuplicateNameError: If the new name belongs to another category
        """
        category = self.get_category(category_id)
        changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}

        # Validate everything before touching the instance
        if 'name' in changes:
            changes['name'] = normalize_name(changes['name'])
            if self.find_existing_names([changes['name']], exclude_id=category.id):
                raise DuplicateNameError([changes['name']])

        if 'subcategories' in changes:
            if changes['subcategories'] is None:
                raise ValidationError(
                    "Subcategories must be a list",
                    details={'field': 'subcategories'}
                )
            changes['subcategories'] = build_subcategories(changes['subcategories'])

        if 'name' in changes:
            category.name = changes['name']
        if 'subcategories' in changes:
            category.subcategories = changes['subcategories']
        if 'excel_file' in changes:
            category.excel_file = changes['excel_file']

        self._commit([category.name])

        logger.info(f"Updated category {category.id} (fields: {sorted(changes)})")
        return category

    def delete_category(self, category_id: str) -> Dict[str, Any]:
        """
        Delete a category together with its embedded subcategories.

        Returns:
            The deleted record in wire form

        Raises:
            NotFoundError: If no category has this id
        """
        category = self.get_category(category_id)
        deleted = category.to_dict()

        self.session.delete(category)
        self._commit([])

        logger.info(f"Deleted category {category_id} "
                    f"({len(deleted['subcategories'])} subcategories)")
        return deleted

    def _commit(self, names: List[str]):
        """Commit the session, translating store errors."""
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Uniqueness violation while saving {names}: {e.orig}")
            raise DuplicateNameError(names or ['<unknown>'])
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error: {e}", exc_info=True)
            raise UnexpectedError("Database operation failed", details={'message': str(e)})
