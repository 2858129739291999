"""
Tests for CategoryService.
"""

import strings


class TestCategoryService:

    def test_create_then_list(self, categories):
        result = categories.create_category("  Capacitors  ")
        assert result == {"success": True, "id": result["id"]}

        listed = categories.list_categories()
        assert [c.name for c in listed] == ["Capacitors"]
        assert listed[0].id == result["id"]

    def test_list_is_ordered_by_name(self, categories):
        for name in ("Transistors", "capacitors", "Diodes"):
            categories.create_category(name)
        assert [c.name for c in categories.list_categories()] == ["capacitors", "Diodes", "Transistors"]

    def test_empty_name_never_reaches_store(self, db, categories):
        before = db.statements
        assert categories.create_category("   ") == {"success": False, "error": strings.CATEGORY_NAME_EMPTY}
        assert categories.create_category(None)["success"] is False
        assert db.statements == before

    def test_duplicate_name_after_trim(self, categories):
        categories.create_category("Resistors")
        result = categories.create_category(" Resistors ")
        assert result == {"success": False, "error": strings.CATEGORY_EXISTS}
        assert len(categories.list_categories()) == 1

    def test_rename(self, categories):
        cid = categories.create_category("Sensor")["id"]
        assert categories.rename_category(cid, " Sensors ") == {"success": True}
        assert categories.list_categories()[0].name == "Sensors"

    def test_rename_missing(self, categories):
        assert categories.rename_category(404, "Anything") == {
            "success": False, "error": strings.CATEGORY_NOT_FOUND
        }

    def test_rename_to_existing_name(self, categories):
        categories.create_category("Fuses")
        cid = categories.create_category("Relays")["id"]
        assert categories.rename_category(cid, "Fuses")["error"] == strings.CATEGORY_EXISTS

    def test_rename_blank(self, categories):
        cid = categories.create_category("Fuses")["id"]
        assert categories.rename_category(cid, "")["error"] == strings.CATEGORY_NAME_EMPTY

    def test_delete(self, categories):
        cid = categories.create_category("Crystals")["id"]
        assert categories.delete_category(cid) == {"success": True, "error": None}
        assert categories.list_categories() == []

    def test_delete_missing_leaves_table_unchanged(self, categories):
        categories.create_category("Crystals")
        result = categories.delete_category(12345)
        assert result == {"success": False, "error": strings.CATEGORY_NOT_FOUND}
        assert len(categories.list_categories()) == 1

    def test_delete_category_in_use(self, categories, components, category_id):
        components.create_component({"category_id": category_id, "name": "ATmega328P"})
        result = categories.delete_category(category_id)
        assert result == {"success": False, "error": strings.CATEGORY_IN_USE}
        assert len(categories.list_categories()) == 1

    def test_list_failure_returns_empty(self, db, categories):
        categories.create_category("Crystals")
        db.close()
        assert categories.list_categories() == []

    def test_create_failure_returns_envelope(self, db, categories):
        db.close()
        assert categories.create_category("Crystals") == {
            "success": False, "error": strings.CATEGORY_ADD_FAILED
        }
