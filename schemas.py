"""Request schemas for the bridge operations and the component payload."""

import json
from typing import Any, Dict, Mapping, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError


def _loose_int(v: Any) -> Optional[int]:
    # Missing, blank, zero or non-numeric ids count as absent
    if v is None or isinstance(v, bool):
        return None
    try:
        n = int(v) if isinstance(v, (int, float)) else int(str(v).strip())
    except (ValueError, OverflowError):
        return None
    return n or None


class ComponentData(BaseModel):
    """
    Component payload sent by the presentation side for add/update.

    Field normalization mirrors what the store expects: names trimmed,
    optional text trimmed with blanks turned into NULL, quantity coerced to
    a non-negative integer, parameters decoded to a JSON object.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    category_id: Optional[int] = None
    name: str = ""
    storage_cell: Optional[str] = None
    datasheet_url: Optional[str] = None
    quantity: int = 0
    parameters: Dict[str, Any] = Field(default_factory=dict)
    image_data: Optional[str] = None
    description: Optional[str] = None

    @field_validator("id", "category_id", mode="before")
    @classmethod
    def _ids(cls, v):
        return _loose_int(v)

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("storage_cell", "datasheet_url", "description", mode="before")
    @classmethod
    def _optional_text(cls, v):
        if v is None:
            return None
        return str(v).strip() or None

    @field_validator("image_data", mode="before")
    @classmethod
    def _image(cls, v):
        return v or None

    @field_validator("quantity", mode="before")
    @classmethod
    def _quantity(cls, v):
        if v is None or isinstance(v, bool):
            return 0
        try:
            n = int(v) if isinstance(v, (int, float)) else int(str(v).strip())
        except (ValueError, OverflowError):
            return 0
        return max(0, n)

    @field_validator("parameters", mode="before")
    @classmethod
    def _parameters(cls, v):
        if v is None or v == "":
            return {}
        if isinstance(v, str):
            try:
                v = json.loads(v)
            except ValueError as e:
                raise ValueError(f"parameters are not valid JSON: {e}") from e
        if not isinstance(v, Mapping):
            raise ValueError("parameters must be a JSON object")
        return dict(v)

    @field_validator("parameters")
    @classmethod
    def _serializable(cls, v):
        try:
            json.dumps(v)
        except (TypeError, ValueError) as e:
            raise ValueError(f"parameters are not JSON serializable: {e}") from e
        return v

    def parameters_json(self) -> str:
        return json.dumps(self.parameters, ensure_ascii=False)


def parse_component(payload: Any) -> ComponentData:
    """
    Validate a component payload.

    Raises:
        ValidationError: If the payload is not a mapping or a field is malformed
    """
    if isinstance(payload, ComponentData):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError("component data must be a mapping")
    try:
        return ComponentData.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise ValidationError(str(e)) from e


class OperationArgs(BaseModel):
    """Base for positional argument schemas; field order is argument order."""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_positional(cls, args: Sequence[Any]) -> "OperationArgs":
        names = list(cls.model_fields)
        if len(args) > len(names):
            raise ValidationError(f"expected at most {len(names)} arguments, got {len(args)}")
        try:
            return cls.model_validate(dict(zip(names, args)))
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e


class NoArgs(OperationArgs):
    pass


class NameArgs(OperationArgs):
    name: Optional[str] = None


class IdArgs(OperationArgs):
    id: int


class IdNameArgs(OperationArgs):
    id: int
    name: Optional[str] = None


class CategoryFilterArgs(OperationArgs):
    category_id: Optional[int] = None

    @field_validator("category_id", mode="before")
    @classmethod
    def _category(cls, v):
        return _loose_int(v)


class ComponentArgs(OperationArgs):
    component: ComponentData


class QueryArgs(OperationArgs):
    query: Optional[str] = None


ArgsSchema = Type[OperationArgs]
