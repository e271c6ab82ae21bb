"""
Editing operations over the canonical model.

Every function returns a new FormDefinition and leaves its input
untouched, so an editor can keep the previous value for undo.

The cross-field rules of the model are enforced here, not in the parser:
    - a rule may only target an existing key other than its own field's
    - removing a field or section drops rules that now point nowhere
    - renaming a key retargets the rules that referenced it
    - a group that loses its last rule is removed, and so is an empty Logic
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from formlogic.conditions import (
    ConditionGroup,
    ConditionMode,
    ConditionOperator,
    ConditionRule,
    normalize_operator,
    operator_needs_value,
)
from formlogic.config import FIELD_ID_PREFIX, NEW_FIELD_LABEL, SECTION_ID_PREFIX
from formlogic.model import FieldOption, FieldType, FormDefinition, FormField, FormSection, Logic
from formlogic.serialization import generate_id

logger = logging.getLogger(__name__)

LOGIC_GROUPS = ("showWhen", "requireWhen")
_GROUP_ATTRS = {"showWhen": "show_when", "requireWhen": "require_when"}


class InvalidRuleError(ValueError):
    """Raised when a rule would target a missing key or its own field."""


def _map_fields(form: FormDefinition, fn: Callable[[FormSection, FormField], FormField]) -> FormDefinition:
    return replace(
        form,
        sections=[replace(s, fields=[fn(s, f) for f in s.fields]) for s in form.sections],
    )


def _require_field(form: FormDefinition, section_id: str, field_id: str) -> FormField:
    section = form.get_section(section_id)
    form_field = section.get_field(field_id) if section is not None else None
    if form_field is None:
        raise KeyError(f"Field {field_id!r} not found in section {section_id!r}")
    return form_field


def _group_attr(which: str) -> str:
    try:
        return _GROUP_ATTRS[which]
    except KeyError:
        raise ValueError(f"Unknown logic group {which!r}; expected one of {LOGIC_GROUPS}") from None


def _with_group(form_field: FormField, which: str, group: Optional[ConditionGroup]) -> FormField:
    current = form_field.logic
    groups = {
        "show_when": current.show_when if current is not None else None,
        "require_when": current.require_when if current is not None else None,
    }
    groups[_group_attr(which)] = group
    return replace(form_field, logic=Logic.from_groups(groups["show_when"], groups["require_when"]))


def _map_logic(form_field: FormField, fn: Callable[[ConditionGroup], Optional[ConditionGroup]]) -> FormField:
    if form_field.logic is None:
        return form_field
    show_when = fn(form_field.logic.show_when) if form_field.logic.show_when is not None else None
    require_when = fn(form_field.logic.require_when) if form_field.logic.require_when is not None else None
    return replace(form_field, logic=Logic.from_groups(show_when, require_when))


def drop_orphaned_rules(form: FormDefinition) -> FormDefinition:
    """Remove rules whose field key no longer exists anywhere in the form."""
    keys = form.field_keys()

    def _prune(group: ConditionGroup) -> Optional[ConditionGroup]:
        orphans = group.referenced_keys() - keys
        if orphans:
            logger.debug("orphaned_rules_dropped", extra={"keys": sorted(orphans)})
        return group.without_keys(orphans)

    return _map_fields(form, lambda _s, f: _map_logic(f, _prune))


def add_section(form: FormDefinition, title: Optional[str] = None) -> FormDefinition:
    section = FormSection(
        id=generate_id(SECTION_ID_PREFIX),
        title=title if title is not None else f"Section {len(form.sections) + 1}",
    )
    return replace(form, sections=[*form.sections, section])


def remove_section(form: FormDefinition, section_id: str) -> FormDefinition:
    remaining = replace(form, sections=[s for s in form.sections if s.id != section_id])
    return drop_orphaned_rules(remaining)


def add_field(
    form: FormDefinition,
    section_id: str,
    field_type: FieldType = FieldType.TEXT,
    label: str = NEW_FIELD_LABEL,
) -> FormDefinition:
    if form.get_section(section_id) is None:
        raise KeyError(f"Section {section_id!r} not found")
    field_id = generate_id(FIELD_ID_PREFIX)
    new_field = FormField(field_id=field_id, key=field_id, type=field_type, label=label)
    return replace(
        form,
        sections=[
            replace(s, fields=[*s.fields, new_field]) if s.id == section_id else s
            for s in form.sections
        ],
    )


def update_field(form: FormDefinition, section_id: str, field_id: str, **changes: Any) -> FormDefinition:
    """
    Apply attribute changes to one field.

    A change of ``key`` goes through rename_field_key so dependent rules follow.
    """
    if "field_id" in changes:
        raise ValueError("field_id cannot be changed")
    _require_field(form, section_id, field_id)
    new_key = changes.pop("key", None)
    updated = _map_fields(
        form,
        lambda s, f: replace(f, **changes) if s.id == section_id and f.field_id == field_id else f,
    )
    if new_key is not None:
        updated = rename_field_key(updated, field_id, new_key)
    return updated


def remove_field(form: FormDefinition, section_id: str, field_id: str) -> FormDefinition:
    remaining = replace(
        form,
        sections=[
            replace(s, fields=[f for f in s.fields if f.field_id != field_id]) if s.id == section_id else s
            for s in form.sections
        ],
    )
    return drop_orphaned_rules(remaining)


def rename_field_key(form: FormDefinition, field_id: str, new_key: str) -> FormDefinition:
    """
    Change a field's key and retarget rules that referenced the old key.

    Rules are left alone while another field still carries the old key.
    """
    target = form.get_field(field_id)
    if target is None:
        raise KeyError(f"Field {field_id!r} not found")
    old_key = target.effective_key
    renamed = _map_fields(form, lambda _s, f: replace(f, key=new_key) if f.field_id == field_id else f)
    effective_new_key = renamed.get_field(field_id).effective_key
    if effective_new_key == old_key or renamed.find_fields_by_key(old_key):
        return renamed
    return _map_fields(renamed, lambda _s, f: _map_logic(f, lambda g: g.retarget(old_key, effective_new_key)))


def set_condition_group(
    form: FormDefinition,
    section_id: str,
    field_id: str,
    which: str,
    group: Union[ConditionGroup, Sequence[ConditionRule], None],
    mode: ConditionMode = ConditionMode.ALL,
) -> FormDefinition:
    """
    Replace the showWhen or requireWhen group of a field.

    ``group`` may be a ConditionGroup, a sequence of rules, or None.
    An empty rule sequence removes the group.
    """
    _require_field(form, section_id, field_id)
    if group is not None and not isinstance(group, ConditionGroup):
        rules = tuple(group)
        group = ConditionGroup(rules=rules, mode=mode) if rules else None
    return _map_fields(
        form,
        lambda s, f: _with_group(f, which, group) if s.id == section_id and f.field_id == field_id else f,
    )


def add_rule(
    form: FormDefinition,
    section_id: str,
    field_id: str,
    which: str,
    field_key: str,
    operator: Any = ConditionOperator.EQ,
    value: Optional[str] = None,
) -> FormDefinition:
    """
    Append a rule to a field's group, creating the group if needed.

    Raises:
        InvalidRuleError: if field_key is unknown or is the field's own key
    """
    form_field = _require_field(form, section_id, field_id)
    if field_key == form_field.effective_key:
        raise InvalidRuleError(f"Field {field_id!r} cannot depend on itself")
    if field_key not in form.field_keys():
        raise InvalidRuleError(f"Unknown field key: {field_key!r}")
    normalized = normalize_operator(operator)
    if operator_needs_value(normalized):
        rule = ConditionRule(field_key=field_key, operator=normalized, value=value if value is not None else "")
    else:
        rule = ConditionRule(field_key=field_key, operator=normalized)
    current = getattr(form_field.logic, _group_attr(which)) if form_field.logic is not None else None
    if current is None:
        group = ConditionGroup(rules=(rule,))
    else:
        group = replace(current, rules=(*current.rules, rule))
    return set_condition_group(form, section_id, field_id, which, group)


def set_rule_operator(rule: ConditionRule, operator: Any) -> ConditionRule:
    return rule.with_operator(operator)


def option_from_label(label: str) -> FieldOption:
    """'Option A' -> FieldOption('Option A', 'option_a')"""
    label = label.strip()
    value = re.sub(r"\s+", "_", label.lower())
    value = re.sub(r"[^a-z0-9_-]", "", value)
    return FieldOption(label=label, value=value)


def append_bulk_options(form: FormDefinition, section_id: str, field_id: str, text: str) -> FormDefinition:
    """Append one option per non-blank line of ``text``."""
    form_field = _require_field(form, section_id, field_id)
    new_options = [option_from_label(line) for line in text.split("\n") if line.strip()]
    if not new_options:
        return form
    return update_field(form, section_id, field_id, options=[*(form_field.options or []), *new_options])


def logic_field_choices(form: FormDefinition, exclude_key: Optional[str] = None) -> List[Tuple[str, str]]:
    """(key, label) pairs a rule may target, minus ``exclude_key``."""
    choices = []
    for f in form.iter_fields():
        key = f.effective_key
        if key == exclude_key:
            continue
        label = (f.label or "").strip() or f.key or f.field_id
        choices.append((key, label))
    return choices
