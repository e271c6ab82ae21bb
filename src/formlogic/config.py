"""
Constants shared by the parser, serializer and editing helpers.

Nothing here is read from the environment. Change behavior by changing
these values, not by threading options through the parse functions.
"""

DEFAULT_FORM_TITLE = "Untitled Form"
DEFAULT_SECTION_TITLE = "Untitled section"
DEFAULT_FIELD_LABEL = "Field"
NEW_FIELD_LABEL = "New field"

SECTION_ID_PREFIX = "sec_"
FIELD_ID_PREFIX = "field_"

# Read order for container keys: canonical name first, legacy name second.
SECTIONS_KEYS = ("sections", "pages")
RULES_KEYS = ("rules", "conditions")

# Persisted type token -> canonical FieldType value.
SCHEMA_TO_FIELD_TYPE = {
    "text": "TEXT",
    "textarea": "TEXTAREA",
    "email": "EMAIL",
    "phone": "PHONE",
    "number": "NUMBER",
    "select": "SELECT",
    "multiselect": "MULTISELECT",
    "multi_select": "MULTISELECT",
    "checkbox": "CHECKBOX",
    "date": "DATE",
    "file_upload": "FILE",
    "info_text": "INFO_TEXT",
}

# Canonical FieldType value -> persisted token. Only canonical spellings are written.
FIELD_TYPE_TO_SCHEMA = {
    "TEXT": "text",
    "TEXTAREA": "textarea",
    "EMAIL": "email",
    "PHONE": "phone",
    "NUMBER": "number",
    "SELECT": "select",
    "MULTISELECT": "multiselect",
    "CHECKBOX": "checkbox",
    "DATE": "date",
    "FILE": "file_upload",
    "INFO_TEXT": "info_text",
}

DEFAULT_SCHEMA_TYPE = "text"
