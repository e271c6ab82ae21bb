"""
Tests for the canonical form model objects.

These tests verify:
    - Basic model creation and defaults
    - Logic invariants
    - Retrieval helpers
"""

import pytest
from formlogic.conditions import ConditionGroup, ConditionRule
from formlogic.model import (
    FieldType,
    FormDefinition,
    FormField,
    FormSection,
    FormStatus,
    Logic,
)


class TestFormField:
    """Test FormField objects."""

    def test_defaults(self):
        f = FormField(field_id="f1", key="name")
        assert f.type == FieldType.TEXT
        assert f.required is False
        assert f.validation is None
        assert f.file is None
        assert f.logic is None

    def test_effective_key(self):
        """Persisted key is trimmed and falls back to the field id."""
        assert FormField(field_id="f1", key=" name ").effective_key == "name"
        assert FormField(field_id="f1", key="").effective_key == "f1"

    def test_eleven_field_types(self):
        assert len(FieldType) == 11


class TestLogic:
    """Test the Logic block invariant."""

    def test_empty_logic_rejected(self):
        with pytest.raises(ValueError):
            Logic()

    def test_from_groups_returns_none_when_empty(self):
        assert Logic.from_groups(None, None) is None

    def test_groups_iterates_present_groups(self):
        group = ConditionGroup(rules=(ConditionRule("a"),))
        logic = Logic.from_groups(None, group)
        assert list(logic.groups()) == [group]


class TestFormDefinition:
    """Test FormDefinition retrieval helpers."""

    def _form(self):
        return FormDefinition(
            id="form_1",
            title="Form",
            sections=[
                FormSection(id="s1", title="One", fields=[FormField(field_id="a", key="a")]),
                FormSection(id="s2", title="Two", fields=[
                    FormField(field_id="b", key="b"),
                    FormField(field_id="c", key="a"),
                ]),
            ],
        )

    def test_default_status_is_draft(self):
        assert FormDefinition(id="f", title="T").status == FormStatus.DRAFT

    def test_get_section(self):
        form = self._form()
        assert form.get_section("s2").title == "Two"
        assert form.get_section("missing") is None

    def test_get_field_across_sections(self):
        form = self._form()
        assert form.get_field("b").key == "b"
        assert form.get_field("missing") is None
        assert form.get_section("s1").get_field("b") is None

    def test_iter_fields_in_order(self):
        assert [f.field_id for f in self._form().iter_fields()] == ["a", "b", "c"]

    def test_keys_may_repeat(self):
        """Nothing in the model enforces key uniqueness."""
        form = self._form()
        assert [f.field_id for f in form.find_fields_by_key("a")] == ["a", "c"]
        assert form.field_keys() == {"a", "b"}
        assert form.field_count == 3
