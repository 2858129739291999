HELP_TEXT = '''
==================== HELP =====================
Categories:
  lc                           List categories
  ac -n NAME                   Add category
  rc -id ID -n NAME            Rename category
  dc -id ID                    Delete category

Components:
  l [-c CID]                   List components (optionally by category)
  info -id ID                  Show component details and parameters
  a                            Add new component (interactive)
  u -id ID -f FIELD -v VAL     Update field of component by ID
  q -id ID -v N                Set quantity of component
  d -id ID                     Delete component by ID
  s -v TEXT                    Search name, cell, category, description

Utilities:
  f                            List all editable component fields
  h                            Show this help
  x                            Exit program
==============================================='''

FIELDS = [
    "category_id", "name", "storage_cell", "datasheet_url",
    "quantity", "parameters", "image_data", "description"
]

NEVER_UPDATED = "Never updated"

# Category messages
CATEGORY_NAME_EMPTY = "Category name cannot be empty"
CATEGORY_EXISTS = "A category with this name already exists"
CATEGORY_NOT_FOUND = "Category not found"
CATEGORY_IN_USE = "Category is used by components and cannot be deleted"
CATEGORY_ADD_FAILED = "Failed to add category"
CATEGORY_UPDATE_FAILED = "Failed to update category"
CATEGORY_DELETE_FAILED = "Failed to delete category"

# Component messages
COMPONENT_REQUIRED_FIELDS = "Category and component name are required"
COMPONENT_ID_REQUIRED = "Component id is required for update"
COMPONENT_NOT_FOUND = "Component not found"
COMPONENT_EXISTS = "A component with this name already exists"
COMPONENT_CATEGORY_MISSING = "The selected category does not exist"
COMPONENT_INVALID_FORMAT = "Invalid data format (check the parameters)"
COMPONENT_SCHEMA_MISMATCH = "Database structure error: missing column"
COMPONENT_ADD_FAILED = "Failed to add component"
COMPONENT_UPDATE_FAILED = "Failed to update component"
COMPONENT_DELETE_FAILED = "Failed to delete component"

# Bridge messages
BRIDGE_NOT_READY = "Backend is not ready: handlers are not registered"
UNKNOWN_OPERATION = "Unknown operation: {name}"
INVALID_REQUEST = "Invalid request: {detail}"
REQUEST_TIMED_OUT = "Request timed out"
INTERNAL_ERROR = "Internal error"
