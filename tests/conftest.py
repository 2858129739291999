import pytest

from bridge import Bridge
from database import InventoryDB
from services import CategoryService, ComponentService


@pytest.fixture
def db(tmp_path):
    with InventoryDB(str(tmp_path / "inventory.db")) as database:
        yield database


@pytest.fixture
def categories(db):
    return CategoryService(db)


@pytest.fixture
def components(db):
    return ComponentService(db)


@pytest.fixture
def category_id(categories):
    return categories.create_category("Microcontrollers")["id"]


@pytest.fixture
def bridge(db):
    b = Bridge(db, timeout=5.0)
    b.register()
    return b
