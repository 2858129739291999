import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)


def decode_parameters(raw: Any) -> Dict[str, Any]:
    """
    Normalize a stored parameters value to a mapping.

    Already-decoded mappings are used as-is; text is parsed as JSON.
    Anything unparseable or not a JSON object becomes an empty mapping.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes)):
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.error("Cannot decode component parameters: %r", raw[:80])
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


@dataclass
class Category:
    """
    Dataclass representing a component category.

    Attributes:
        id: Unique identifier (auto-incremented)
        name: Category name, unique across categories (e.g., 'Resistors')
    """
    id: int = None
    name: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Category":
        return cls(id=row["id"], name=row["name"])


@dataclass
class Component:
    """
    Dataclass representing an electronic component in inventory.

    Attributes:
        id: Unique identifier (auto-incremented)
        category_id: Owning category
        name: Component name (e.g., 'STM32F401RET6')
        storage_cell: Optional storage location label (e.g., 'A3-12')
        datasheet_url: Optional datasheet link
        quantity: Current stock count, never negative
        parameters: Free-form characteristics (e.g., {'voltage': '5V'})
        image_data: Optional image as a data URI
        description: Optional notes
        updated_at: Last modification time as stored
        category_name: Joined category name (read paths only)
    """
    id: int = None
    category_id: Optional[int] = None
    name: str = ""
    storage_cell: Optional[str] = None
    datasheet_url: Optional[str] = None
    quantity: int = 0
    parameters: Dict[str, Any] = field(default_factory=dict)
    image_data: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[str] = None
    category_name: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Component":
        return cls(
            id=row["id"],
            category_id=row.get("category_id"),
            name=row.get("name") or "",
            storage_cell=row.get("storage_cell"),
            datasheet_url=row.get("datasheet_url"),
            quantity=row.get("quantity") or 0,
            parameters=decode_parameters(row.get("parameters")),
            image_data=row.get("image_data"),
            description=row.get("description"),
            updated_at=row.get("updated_at"),
            category_name=row.get("category_name"),
        )
