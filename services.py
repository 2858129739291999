import logging
from typing import Any, Dict, List, Optional, Union

import strings
from database import InventoryDB
from errors import ErrorKind, StoreError, ValidationError
from models import Category, Component
from schemas import ComponentData, parse_component

logger = logging.getLogger(__name__)

Envelope = Dict[str, Any]

_COMPONENT_SELECT = """
    SELECT c.*, cat.name AS category_name
    FROM components c
    LEFT JOIN categories cat ON c.category_id = cat.id
"""

_COMPONENT_ERRORS = {
    ErrorKind.FOREIGN_KEY_VIOLATION: strings.COMPONENT_CATEGORY_MISSING,
    ErrorKind.UNIQUE_VIOLATION: strings.COMPONENT_EXISTS,
    ErrorKind.INVALID_INPUT_FORMAT: strings.COMPONENT_INVALID_FORMAT,
    ErrorKind.SCHEMA_MISMATCH: strings.COMPONENT_SCHEMA_MISMATCH,
}


def _ok(**fields) -> Envelope:
    return {"success": True, **fields}


def _fail(error: str, **fields) -> Envelope:
    return {"success": False, "error": error, **fields}


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.casefold()}%"


class CategoryService:
    """CRUD operations over component categories."""

    def __init__(self, db: InventoryDB):
        self.db = db

    def list_categories(self) -> List[Category]:
        """
        Get all categories ordered by name.

        Returns:
            List of categories; empty if the store fails (the failure is logged)
        """
        try:
            rows = self.db.fetch_all("SELECT id, name FROM categories ORDER BY name COLLATE NOCASE, name")
        except StoreError:
            logger.exception("Failed to list categories")
            return []
        return [Category.from_row(row) for row in rows]

    def create_category(self, name: Optional[str]) -> Envelope:
        """
        Add a new category.

        Args:
            name: Category name; surrounding whitespace is dropped

        Returns:
            {'success': True, 'id': new_id} or {'success': False, 'error': message}
        """
        name = (name or "").strip()
        if not name:
            return _fail(strings.CATEGORY_NAME_EMPTY)

        try:
            result = self.db.execute("INSERT INTO categories (name) VALUES (?)", (name,))
        except StoreError as e:
            logger.error("Failed to add category %r: %r", name, e)
            if e.kind is ErrorKind.UNIQUE_VIOLATION:
                return _fail(strings.CATEGORY_EXISTS)
            return _fail(strings.CATEGORY_ADD_FAILED)

        logger.info("Category %r added with id %s", name, result.lastrowid)
        return _ok(id=result.lastrowid)

    def rename_category(self, category_id: int, name: Optional[str]) -> Envelope:
        """Rename a category; fails if the name is blank, taken, or the id is unknown."""
        name = (name or "").strip()
        if not name:
            return _fail(strings.CATEGORY_NAME_EMPTY)

        try:
            result = self.db.execute("UPDATE categories SET name = ? WHERE id = ?", (name, category_id))
        except StoreError as e:
            logger.error("Failed to update category %s: %r", category_id, e)
            if e.kind is ErrorKind.UNIQUE_VIOLATION:
                return _fail(strings.CATEGORY_EXISTS)
            return _fail(strings.CATEGORY_UPDATE_FAILED)

        if result.rowcount > 0:
            return _ok()
        return _fail(strings.CATEGORY_NOT_FOUND)

    def delete_category(self, category_id: int) -> Envelope:
        """
        Delete a category by id.

        Categories still referenced by components are kept; the store's
        foreign key rejects the delete.
        """
        try:
            result = self.db.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        except StoreError as e:
            logger.error("Failed to delete category %s: %r", category_id, e)
            if e.kind is ErrorKind.FOREIGN_KEY_VIOLATION:
                return _fail(strings.CATEGORY_IN_USE)
            return _fail(strings.CATEGORY_DELETE_FAILED)

        return {
            "success": result.rowcount > 0,
            "error": None if result.rowcount > 0 else strings.CATEGORY_NOT_FOUND,
        }


class ComponentService:
    """
    CRUD, listing and search over components.

    Writes take the full component snapshot: update overwrites every mutable
    column, so callers resend the whole record.
    """

    def __init__(self, db: InventoryDB):
        self.db = db

    def list_components(self, category_id: Optional[int] = None) -> List[Component]:
        """
        Get components with their category name, ordered by name.

        Args:
            category_id: Only components of this category; all when omitted

        Returns:
            List of components; empty if the store fails (the failure is logged)
        """
        if category_id:
            query = _COMPONENT_SELECT + "WHERE c.category_id = ? ORDER BY c.name COLLATE NOCASE, c.name"
            params = (category_id,)
        else:
            query = _COMPONENT_SELECT + "ORDER BY c.name COLLATE NOCASE, c.name"
            params = ()

        try:
            rows = self.db.fetch_all(query, params)
        except StoreError:
            logger.exception("Failed to list components (category=%s)", category_id)
            return []
        return [Component.from_row(row) for row in rows]

    def get_component(self, component_id: int) -> Optional[Component]:
        """Retrieve a component by its ID, or None if it doesn't exist."""
        try:
            row = self.db.fetch_one(_COMPONENT_SELECT + "WHERE c.id = ?", (component_id,))
        except StoreError:
            logger.exception("Failed to get component %s", component_id)
            return None
        return Component.from_row(row) if row else None

    def create_component(self, data: Union[ComponentData, Dict[str, Any]]) -> Envelope:
        """
        Add a new component.

        Args:
            data: Component payload; category_id and name are mandatory

        Returns:
            {'success': True, 'id': new_id} or {'success': False, 'error': message}
        """
        try:
            component = parse_component(data)
        except ValidationError as e:
            logger.error("Invalid component payload: %s", e)
            return _fail(strings.COMPONENT_INVALID_FORMAT)

        if not component.category_id or not component.name:
            return _fail(strings.COMPONENT_REQUIRED_FIELDS)

        logger.debug("Adding component: %s", component.model_dump(exclude={"image_data"}))
        try:
            result = self.db.execute(
                """
                INSERT INTO components (
                    category_id, name, storage_cell, datasheet_url, quantity,
                    parameters, image_data, description, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
                """,
                (
                    component.category_id, component.name, component.storage_cell,
                    component.datasheet_url, component.quantity, component.parameters_json(),
                    component.image_data, component.description,
                ),
            )
        except StoreError as e:
            logger.error("Failed to add component %r: %r", component.name, e)
            return _fail(_COMPONENT_ERRORS.get(e.kind, strings.COMPONENT_ADD_FAILED))

        logger.info("Component %r added with id %s", component.name, result.lastrowid)
        return _ok(id=result.lastrowid)

    def update_component(self, data: Union[ComponentData, Dict[str, Any]]) -> Envelope:
        """
        Overwrite all mutable fields of an existing component.

        Args:
            data: Full component snapshot including its id

        Returns:
            {'success': True, 'changes': n, 'error': None or not-found message};
            {'success': False, 'changes': 0, 'error': message} on failure
        """
        try:
            component = parse_component(data)
        except ValidationError as e:
            logger.error("Invalid component payload: %s", e)
            return _fail(strings.COMPONENT_INVALID_FORMAT, changes=0)

        if not component.id:
            return _fail(strings.COMPONENT_ID_REQUIRED, changes=0)
        if not component.category_id or not component.name:
            return _fail(strings.COMPONENT_REQUIRED_FIELDS, changes=0)

        try:
            result = self.db.execute(
                """
                UPDATE components SET
                    category_id = ?, name = ?, storage_cell = ?, datasheet_url = ?,
                    quantity = ?, parameters = ?, image_data = ?, description = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (
                    component.category_id, component.name, component.storage_cell,
                    component.datasheet_url, component.quantity, component.parameters_json(),
                    component.image_data, component.description, component.id,
                ),
            )
        except StoreError as e:
            logger.error("Failed to update component %s: %r", component.id, e)
            return _fail(_COMPONENT_ERRORS.get(e.kind, strings.COMPONENT_UPDATE_FAILED), changes=0)

        return _ok(
            changes=result.rowcount,
            error=None if result.rowcount > 0 else strings.COMPONENT_NOT_FOUND,
        )

    def delete_component(self, component_id: int) -> Envelope:
        """Delete a component by id."""
        try:
            result = self.db.execute("DELETE FROM components WHERE id = ?", (component_id,))
        except StoreError as e:
            logger.error("Failed to delete component %s: %r", component_id, e)
            return _fail(strings.COMPONENT_DELETE_FAILED)

        return {
            "success": result.rowcount > 0,
            "error": None if result.rowcount > 0 else strings.COMPONENT_NOT_FOUND,
        }

    def search_components(self, query: Optional[str]) -> List[Component]:
        """
        Case-insensitive substring search over name, storage cell,
        category name and description.

        Args:
            query: Text to look for; blank text matches nothing

        Returns:
            Matching components ordered by name
        """
        query = (query or "").strip()
        if not query:
            return []

        pattern = _like_pattern(query)
        try:
            rows = self.db.fetch_all(
                _COMPONENT_SELECT
                + """
                WHERE casefold(c.name) LIKE ? ESCAPE '\\'
                   OR casefold(c.storage_cell) LIKE ? ESCAPE '\\'
                   OR casefold(cat.name) LIKE ? ESCAPE '\\'
                   OR casefold(c.description) LIKE ? ESCAPE '\\'
                ORDER BY c.name COLLATE NOCASE, c.name
                """,
                (pattern, pattern, pattern, pattern),
            )
        except StoreError:
            logger.exception("Failed to search components for %r", query)
            return []
        return [Component.from_row(row) for row in rows]
