"""
Request bridge between the presentation side and the backend services.

A fixed table maps operation names to service calls. Every operation takes
positional arguments validated by its schema and returns a JSON-serializable
value; failures come back as values, never as exceptions.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import strings
from database import InventoryDB
from errors import BridgeNotReadyError, ValidationError
from schemas import (
    ArgsSchema,
    CategoryFilterArgs,
    ComponentArgs,
    IdArgs,
    IdNameArgs,
    NameArgs,
    NoArgs,
    QueryArgs,
)
from services import CategoryService, ComponentService

logger = logging.getLogger(__name__)

OPERATION_NAMES = [
    "getCategories",
    "addCategory",
    "updateCategory",
    "deleteCategory",
    "getComponents",
    "getComponent",
    "addComponent",
    "updateComponent",
    "deleteComponent",
    "searchComponents",
]


def _empty_list(error: str) -> List[Any]:
    return []


def _nothing(error: str) -> None:
    return None


def _error_envelope(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}


def _update_error_envelope(error: str) -> Dict[str, Any]:
    return {"success": False, "changes": 0, "error": error}


@dataclass(frozen=True)
class Operation:
    """
    A registered bridge operation.

    Attributes:
        name: Public operation name
        schema: Positional argument schema
        handler: Called with the validated arguments
        failure: Builds the value returned when the call cannot complete
    """
    name: str
    schema: ArgsSchema
    handler: Callable[[Any], Any]
    failure: Callable[[str], Any]


def to_json(value: Any) -> Any:
    """Convert service results (dataclasses, lists of them) to plain data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [to_json(item) for item in value]
    return value


class Bridge:
    """
    Named-operation router over the category and component services.

    Operations become callable only after register(), which first checks
    that the database answers. Each call runs in a worker thread under a
    deadline; an expired call interrupts its statement.
    """

    def __init__(self, db: InventoryDB,
                 categories: Optional[CategoryService] = None,
                 components: Optional[ComponentService] = None,
                 timeout: float = 10.0):
        self.db = db
        self.categories = categories or CategoryService(db)
        self.components = components or ComponentService(db)
        self.timeout = timeout
        self._operations: Dict[str, Operation] = {}

    @property
    def ready(self) -> bool:
        return bool(self._operations)

    def _build_operations(self) -> List[Operation]:
        categories, components = self.categories, self.components
        return [
            Operation("getCategories", NoArgs,
                      lambda a: categories.list_categories(), _empty_list),
            Operation("addCategory", NameArgs,
                      lambda a: categories.create_category(a.name), _error_envelope),
            Operation("updateCategory", IdNameArgs,
                      lambda a: categories.rename_category(a.id, a.name), _error_envelope),
            Operation("deleteCategory", IdArgs,
                      lambda a: categories.delete_category(a.id), _error_envelope),
            Operation("getComponents", CategoryFilterArgs,
                      lambda a: components.list_components(a.category_id), _empty_list),
            Operation("getComponent", IdArgs,
                      lambda a: components.get_component(a.id), _nothing),
            Operation("addComponent", ComponentArgs,
                      lambda a: components.create_component(a.component), _error_envelope),
            Operation("updateComponent", ComponentArgs,
                      lambda a: components.update_component(a.component), _update_error_envelope),
            Operation("deleteComponent", IdArgs,
                      lambda a: components.delete_component(a.id), _error_envelope),
            Operation("searchComponents", QueryArgs,
                      lambda a: components.search_components(a.query), _empty_list),
        ]

    def register(self) -> List[str]:
        """
        Check the database and register all operations.

        Returns:
            Names of the registered operations

        Raises:
            StoreError: If the database does not answer; nothing is registered
        """
        if self._operations:
            return self.registered_operations()

        now = self.db.ping()
        logger.info("Database connection is alive (server time %s)", now)

        for operation in self._build_operations():
            self._operations[operation.name] = operation
        logger.info("Registered %d bridge operations", len(self._operations))
        self.check_handlers()
        return self.registered_operations()

    def registered_operations(self) -> List[str]:
        return [name for name in OPERATION_NAMES if name in self._operations]

    def check_handlers(self) -> Dict[str, bool]:
        """Log and return, per known operation, whether a handler is registered."""
        status = {name: name in self._operations for name in OPERATION_NAMES}
        for name, registered in status.items():
            if registered:
                logger.debug("Handler %s: registered", name)
            else:
                logger.warning("Handler %s: NOT registered", name)
        return status

    async def invoke(self, name: str, *args: Any) -> Any:
        """
        Run a named operation.

        Args:
            name: Operation name (see OPERATION_NAMES)
            args: Positional arguments of the operation

        Returns:
            JSON-serializable result; on failure the operation's failure
            value (error envelope, empty list or None)

        Raises:
            BridgeNotReadyError: If called before register()
        """
        if not self._operations:
            raise BridgeNotReadyError(strings.BRIDGE_NOT_READY)

        operation = self._operations.get(name)
        if operation is None:
            logger.warning("Unknown bridge operation %r", name)
            return _error_envelope(strings.UNKNOWN_OPERATION.format(name=name))

        try:
            request = operation.schema.from_positional(args)
        except ValidationError as e:
            logger.warning("Rejected %s request: %s", name, e)
            return operation.failure(strings.INVALID_REQUEST.format(detail=name))

        logger.debug("Dispatching %s", name)
        try:
            result = await asyncio.wait_for(
                asyncio.to_thread(operation.handler, request), timeout=self.timeout
            )
            return to_json(result)
        except asyncio.TimeoutError:
            logger.error("%s timed out after %.2fs, interrupting", name, self.timeout)
            self.db.interrupt()
            return operation.failure(strings.REQUEST_TIMED_OUT)
        except Exception:
            logger.exception("Unhandled error in %s", name)
            return operation.failure(strings.INTERNAL_ERROR)

    def dispatch(self, name: str, *args: Any) -> Any:
        """Blocking variant of invoke() for callers without an event loop."""
        return asyncio.run(self.invoke(name, *args))
