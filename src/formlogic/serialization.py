"""
Serialization helpers for form definitions (fields, sections, condition groups).

Reading is forgiving: every historical shape of the persisted schema is
accepted and normalized. Writing is strict: only the canonical shape is
ever produced.

    persisted dict --(*_from_dict)--> canonical model --(*_to_dict)--> persisted dict

Legacy shapes accepted on read only:
    - "pages" instead of "sections"
    - "conditions" instead of "rules", "key" instead of "fieldKey"
    - symbolic operators ("==", "<>", ...)
    - flat min/max/pattern/allowedTypes/placeholder/description/options/
      required/showWhen/requireWhen on the field itself
    - "multi_select" as a type token
"""
from __future__ import annotations

import json
import logging
import secrets
from dataclasses import fields as dataclass_fields
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from formlogic.coercion import (
    as_mapping,
    first_defined,
    merge_string_arrays,
    to_optional_number,
    to_optional_string,
    to_optional_string_array,
)
from formlogic.conditions import (
    ConditionGroup,
    ConditionMode,
    ConditionRule,
    normalize_operator,
    operator_needs_value,
)
from formlogic.config import (
    DEFAULT_FIELD_LABEL,
    DEFAULT_SCHEMA_TYPE,
    DEFAULT_SECTION_TITLE,
    FIELD_ID_PREFIX,
    FIELD_TYPE_TO_SCHEMA,
    RULES_KEYS,
    SCHEMA_TO_FIELD_TYPE,
    SECTION_ID_PREFIX,
    SECTIONS_KEYS,
)
from formlogic.model import (
    FieldOption,
    FieldType,
    FileConstraints,
    FormDefinition,
    FormField,
    FormSection,
    Logic,
    Validation,
)

logger = logging.getLogger(__name__)


def generate_id(prefix: str) -> str:
    return f"{prefix}{secrets.token_hex(6)}"


def _first_list(raw: Dict[str, Any], keys: Iterable[str]) -> List[Any]:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, list):
            return value
    return []


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _none_if_empty(block: Any) -> Any:
    """Drop a Validation/FileConstraints block whose members are all None."""
    if all(getattr(block, f.name) is None for f in dataclass_fields(block)):
        return None
    return block


# ---------------------------------------------------------------------------
# Condition groups
# ---------------------------------------------------------------------------


def condition_rule_from_dict(raw: Dict[str, Any]) -> Optional[ConditionRule]:
    if isinstance(raw.get("fieldKey"), str):
        field_key = raw["fieldKey"].strip()
    elif isinstance(raw.get("key"), str):
        field_key = raw["key"].strip()
    else:
        field_key = ""
    if not field_key:
        logger.debug("condition_rule_dropped", extra={"reason": "missing_field_key"})
        return None
    value = raw.get("value")
    return ConditionRule(
        field_key=field_key,
        operator=normalize_operator(raw.get("operator")),
        value=None if value is None else _stringify(value),
    )


def condition_group_from_dict(raw: Any) -> Optional[ConditionGroup]:
    """
    Build a ConditionGroup from any raw value.

    Returns None for non-mappings and for groups with no usable rule.
    """
    if not isinstance(raw, dict):
        return None
    rules: List[ConditionRule] = []
    for entry in _first_list(raw, RULES_KEYS):
        if not isinstance(entry, dict):
            logger.debug("condition_rule_dropped", extra={"reason": "not_an_object"})
            continue
        rule = condition_rule_from_dict(entry)
        if rule is not None:
            rules.append(rule)
    if not rules:
        return None
    mode_value = str(first_defined(raw.get("mode"), "all")).strip().lower()
    mode = ConditionMode.ANY if mode_value == "any" else ConditionMode.ALL
    return ConditionGroup(rules=tuple(rules), mode=mode)


def condition_rule_to_dict(rule: ConditionRule) -> Dict[str, Any]:
    d: Dict[str, Any] = {"fieldKey": rule.field_key, "operator": rule.operator.value}
    if rule.value is not None and operator_needs_value(rule.operator):
        d["value"] = rule.value
    return d


def condition_group_to_dict(group: ConditionGroup) -> Dict[str, Any]:
    if not isinstance(group, ConditionGroup):
        raise TypeError(f"Unsupported condition group type: {type(group)}")
    return {
        "mode": group.mode.value,
        "rules": [condition_rule_to_dict(rule) for rule in group.rules],
    }


def logic_to_dict(logic: Logic | None) -> Dict[str, Any] | None:
    if logic is None:
        return None
    d: Dict[str, Any] = {}
    if logic.show_when is not None:
        d["showWhen"] = condition_group_to_dict(logic.show_when)
    if logic.require_when is not None:
        d["requireWhen"] = condition_group_to_dict(logic.require_when)
    return d or None


# ---------------------------------------------------------------------------
# Fields
# ---------------------------------------------------------------------------


def field_type_from_token(token: Any) -> FieldType:
    """Persisted type token -> FieldType. Unknown tokens become TEXT."""
    normalized = str(token if token is not None else "").strip().lower()
    mapped = SCHEMA_TO_FIELD_TYPE.get(normalized)
    if mapped is None:
        if normalized:
            logger.debug("field_type_defaulted", extra={"type": token})
        return FieldType.TEXT
    return FieldType(mapped)


def field_type_to_token(field_type: Union[FieldType, str]) -> str:
    name = field_type.value if isinstance(field_type, FieldType) else str(field_type)
    return FIELD_TYPE_TO_SCHEMA.get(name, DEFAULT_SCHEMA_TYPE)


def _options_from_raw(raw_options: Any) -> Optional[List[FieldOption]]:
    if not isinstance(raw_options, list):
        return None
    return [
        FieldOption(label=o["label"], value=o["value"])
        for o in raw_options
        if isinstance(o, dict) and isinstance(o.get("label"), str) and isinstance(o.get("value"), str)
    ]


def _validation_from_raw(raw: Dict[str, Any], validation: Dict[str, Any]) -> Validation:
    return Validation(
        min=first_defined(to_optional_number(validation.get("min")), to_optional_number(raw.get("min"))),
        max=first_defined(to_optional_number(validation.get("max")), to_optional_number(raw.get("max"))),
        pattern=first_defined(
            to_optional_string(validation.get("pattern")),
            to_optional_string(raw.get("pattern")),
        ),
        allowed_types=first_defined(
            to_optional_string_array(validation.get("allowedTypes")),
            to_optional_string_array(raw.get("allowedTypes")),
        ),
    )


def _file_from_raw(ui: Dict[str, Any], validation: Validation) -> FileConstraints:
    allowed = first_defined(to_optional_string_array(ui.get("allowedMimeTypes")), validation.allowed_types)
    return FileConstraints(
        allowed_mime_types=list(allowed) if allowed is not None else None,
        max_file_size_mb=to_optional_number(ui.get("maxFileSizeMB")),
        max_files=to_optional_number(ui.get("maxFiles")),
    )


def field_from_dict(raw: Any) -> FormField:
    raw = as_mapping(raw)
    field_id = str(raw["id"]) if raw.get("id") is not None else generate_id(FIELD_ID_PREFIX)
    key = raw["key"] if isinstance(raw.get("key"), str) and raw["key"] else field_id

    raw_validation = as_mapping(raw.get("validation"))
    raw_ui = as_mapping(raw.get("ui"))
    raw_logic = as_mapping(raw.get("logic"))

    validation = _validation_from_raw(raw, raw_validation)
    file = _file_from_raw(raw_ui, validation)

    show_when = condition_group_from_dict(first_defined(raw_logic.get("showWhen"), raw.get("showWhen")))
    require_when = condition_group_from_dict(first_defined(raw_logic.get("requireWhen"), raw.get("requireWhen")))

    return FormField(
        field_id=field_id,
        key=key,
        type=field_type_from_token(raw.get("type")),
        label=str(raw["label"]) if raw.get("label") is not None else DEFAULT_FIELD_LABEL,
        required=bool(first_defined(raw_validation.get("required"), raw.get("required"))),
        placeholder=first_defined(
            to_optional_string(raw_ui.get("placeholder")),
            to_optional_string(raw.get("placeholder")),
        ),
        description=first_defined(
            to_optional_string(raw_ui.get("description")),
            to_optional_string(raw.get("description")),
        ),
        options=_options_from_raw(first_defined(raw_ui.get("options"), raw.get("options"))),
        validation=_none_if_empty(validation),
        file=_none_if_empty(file),
        logic=Logic.from_groups(show_when, require_when),
    )


def _ui_to_dict(f: FormField) -> Dict[str, Any]:
    ui: Dict[str, Any] = {}
    if f.placeholder:
        ui["placeholder"] = f.placeholder
    if f.description:
        ui["description"] = f.description
    if f.options:
        ui["options"] = [{"label": o.label, "value": o.value} for o in f.options]
    if f.file is not None:
        if f.file.allowed_mime_types:
            ui["allowedMimeTypes"] = list(f.file.allowed_mime_types)
        if f.file.max_file_size_mb is not None:
            ui["maxFileSizeMB"] = f.file.max_file_size_mb
        if f.file.max_files is not None:
            ui["maxFiles"] = f.file.max_files
    return ui


def _validation_to_dict(f: FormField) -> Dict[str, Any]:
    v = f.validation or Validation()
    allowed_types = merge_string_arrays(
        v.allowed_types,
        f.file.allowed_mime_types if f.file is not None else None,
    )
    d: Dict[str, Any] = {}
    if f.required:
        d["required"] = True
    if v.min is not None:
        d["min"] = v.min
    if v.max is not None:
        d["max"] = v.max
    if v.pattern:
        d["pattern"] = v.pattern
    if allowed_types:
        d["allowedTypes"] = allowed_types
    return d


def field_to_dict(f: FormField) -> Dict[str, Any]:
    if not isinstance(f, FormField):
        raise TypeError(f"Unsupported field type: {type(f)}")
    d: Dict[str, Any] = {
        "id": f.field_id,
        "key": f.effective_key,
        "type": field_type_to_token(f.type),
        "label": f.label,
    }
    validation = _validation_to_dict(f)
    if validation:
        d["validation"] = validation
    ui = _ui_to_dict(f)
    if ui:
        d["ui"] = ui
    logic = logic_to_dict(f.logic)
    if logic:
        d["logic"] = logic
    return d


# ---------------------------------------------------------------------------
# Sections and whole schemas
# ---------------------------------------------------------------------------


def section_from_dict(raw: Dict[str, Any]) -> FormSection:
    raw_fields = raw.get("fields")
    return FormSection(
        id=str(raw["id"]) if raw.get("id") is not None else generate_id(SECTION_ID_PREFIX),
        title=str(raw["title"]) if raw.get("title") is not None else DEFAULT_SECTION_TITLE,
        description=to_optional_string(raw.get("description")),
        fields=[field_from_dict(f) for f in raw_fields if isinstance(f, dict)]
        if isinstance(raw_fields, list)
        else [],
    )


def section_to_dict(s: FormSection) -> Dict[str, Any]:
    d: Dict[str, Any] = {"id": s.id, "title": s.title}
    if s.description:
        d["description"] = s.description
    d["fields"] = [field_to_dict(f) for f in s.fields]
    return d


def sections_from_schema(raw: Any) -> List[FormSection]:
    """
    Parse a persisted schema document into ordered sections.

    Accepts "sections" or the legacy "pages". Anything else yields [].
    """
    raw = as_mapping(raw)
    sections: List[FormSection] = []
    for entry in _first_list(raw, SECTIONS_KEYS):
        if not isinstance(entry, dict):
            logger.debug("section_dropped", extra={"reason": "not_an_object"})
            continue
        sections.append(section_from_dict(entry))
    return sections


def schema_to_dict(form: Union[FormDefinition, Iterable[FormSection]]) -> Dict[str, Any]:
    sections = form.sections if isinstance(form, FormDefinition) else form
    return {"sections": [section_to_dict(s) for s in sections]}


def schema_to_json(form: Union[FormDefinition, Iterable[FormSection]]) -> str:
    return json.dumps(schema_to_dict(form), sort_keys=True)


def schema_from_json(s: str) -> List[FormSection]:
    return sections_from_schema(json.loads(s))


def schema_to_yaml(form: Union[FormDefinition, Iterable[FormSection]]) -> str:
    return yaml.safe_dump(schema_to_dict(form))


def schema_from_yaml(s: str) -> List[FormSection]:
    return sections_from_schema(yaml.safe_load(s))
