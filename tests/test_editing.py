"""
Tests for editing operations over the canonical model.

These tests verify:
    - Edits return new forms and never mutate their input
    - Orphaned rules are dropped when fields or sections go away
    - Key renames carry dependent rules along
    - Empty groups and empty logic blocks never survive
"""

import copy

import pytest
from formlogic.conditions import ConditionGroup, ConditionMode, ConditionOperator, ConditionRule
from formlogic.editing import (
    InvalidRuleError,
    add_field,
    add_rule,
    add_section,
    append_bulk_options,
    logic_field_choices,
    option_from_label,
    remove_field,
    remove_section,
    rename_field_key,
    set_condition_group,
    set_rule_operator,
    update_field,
)
from formlogic.examples import build_example_application_form
from formlogic.model import FieldOption, FieldType, FormDefinition, FormField, FormSection, Logic
from formlogic.serialization import field_to_dict, schema_to_dict


@pytest.fixture
def form():
    return build_example_application_form()


class TestSectionsAndFields:

    def test_add_section(self, form):
        updated = add_section(form)
        assert len(updated.sections) == 3
        assert updated.sections[-1].title == "Section 3"
        assert updated.sections[-1].id.startswith("sec_")
        assert len(form.sections) == 2

    def test_add_field(self, form):
        updated = add_field(form, "sec_about")
        new_field = updated.get_section("sec_about").fields[-1]
        assert new_field.field_id.startswith("field_")
        assert new_field.key == new_field.field_id
        assert new_field.type == FieldType.TEXT
        assert new_field.label == "New field"
        assert new_field.required is False
        assert len(form.get_section("sec_about").fields) == 4

    def test_add_field_unknown_section(self, form):
        with pytest.raises(KeyError):
            add_field(form, "missing")

    def test_update_field(self, form):
        updated = update_field(form, "sec_about", "fld_age", label="Your age", required=True)
        age = updated.get_field("fld_age")
        assert age.label == "Your age"
        assert age.required is True
        assert form.get_field("fld_age").label == "Age"

    def test_field_id_is_immutable(self, form):
        with pytest.raises(ValueError):
            update_field(form, "sec_about", "fld_age", field_id="other")

    def test_edits_do_not_mutate_input(self, form):
        before = copy.deepcopy(form)
        remove_field(form, "sec_about", "fld_role")
        rename_field_key(form, "fld_age", "years")
        add_section(form)
        assert form == before


class TestOrphanedRules:
    """Rules that lose their target are dropped, never left dangling."""

    def test_remove_field_drops_dependent_groups(self, form):
        updated = remove_field(form, "sec_about", "fld_role")
        proof = updated.get_field("fld_proof")
        other = updated.get_field("fld_role_other")
        assert proof.logic.show_when is None
        assert proof.logic.require_when is not None
        assert other.logic is None
        assert "logic" not in field_to_dict(other)

    def test_remove_field_keeps_partial_groups(self, form):
        updated = remove_field(form, "sec_about", "fld_age")
        proof = updated.get_field("fld_proof")
        assert proof.logic.require_when is None
        assert proof.logic.show_when.rules == (ConditionRule("role", ConditionOperator.EQ, "student"),)

    def test_remove_section(self, form):
        updated = remove_section(form, "sec_about")
        assert [s.id for s in updated.sections] == ["sec_details"]
        for f in updated.iter_fields():
            assert f.logic is None

    def test_shared_key_keeps_rules(self):
        """A rule stays valid while another field still carries its key."""
        form = FormDefinition(id="f", title="T", sections=[FormSection(id="s", title="S", fields=[
            FormField(field_id="a1", key="a"),
            FormField(field_id="a2", key="a"),
            FormField(field_id="b", key="b", logic=Logic(show_when=ConditionGroup(rules=(ConditionRule("a", value="1"),)))),
        ])])
        updated = remove_field(form, "s", "a1")
        assert updated.get_field("b").logic is not None


class TestRenameKey:

    def test_rules_follow_the_rename(self, form):
        updated = rename_field_key(form, "fld_role", "position")
        assert updated.get_field("fld_role").key == "position"
        proof = updated.get_field("fld_proof")
        assert proof.logic.show_when.rules[0].field_key == "position"
        assert updated.get_field("fld_role_other").logic.show_when.rules[0].field_key == "position"

    def test_update_field_key_goes_through_rename(self, form):
        updated = update_field(form, "sec_about", "fld_age", key="years", label="Years")
        rules = updated.get_field("fld_proof").logic.require_when.rules
        assert {r.field_key for r in rules} == {"years"}
        assert updated.get_field("fld_age").label == "Years"

    def test_blank_key_retargets_to_field_id(self, form):
        updated = rename_field_key(form, "fld_role", "  ")
        assert updated.get_field("fld_proof").logic.show_when.rules[0].field_key == "fld_role"

    def test_unknown_field(self, form):
        with pytest.raises(KeyError):
            rename_field_key(form, "missing", "x")


class TestConditionGroups:

    def test_empty_rule_list_removes_group(self, form):
        """Emptying the only group of a field removes its logic entirely."""
        updated = set_condition_group(form, "sec_details", "fld_role_other", "showWhen", [])
        f = updated.get_field("fld_role_other")
        assert f.logic is None
        assert "logic" not in field_to_dict(f)

    def test_removing_one_group_keeps_the_other(self, form):
        updated = set_condition_group(form, "sec_details", "fld_proof", "requireWhen", None)
        f = updated.get_field("fld_proof")
        assert f.logic.require_when is None
        assert list(field_to_dict(f)["logic"]) == ["showWhen"]

    def test_set_from_rules(self, form):
        updated = set_condition_group(
            form, "sec_about", "fld_email", "requireWhen",
            [ConditionRule("age", ConditionOperator.GTE, "18")], mode=ConditionMode.ANY,
        )
        group = updated.get_field("fld_email").logic.require_when
        assert group.mode == ConditionMode.ANY
        assert group.rules == (ConditionRule("age", ConditionOperator.GTE, "18"),)

    def test_unknown_group_name(self, form):
        with pytest.raises(ValueError):
            set_condition_group(form, "sec_about", "fld_email", "hideWhen", None)

    def test_add_rule_creates_group(self, form):
        updated = add_rule(form, "sec_about", "fld_email", "showWhen", "age", ">", "21")
        assert updated.get_field("fld_email").logic.show_when.rules == (
            ConditionRule("age", ConditionOperator.GT, "21"),
        )

    def test_add_rule_appends(self, form):
        updated = add_rule(form, "sec_details", "fld_role_other", "showWhen", "age", "exists", "ignored")
        rules = updated.get_field("fld_role_other").logic.show_when.rules
        assert rules[-1] == ConditionRule("age", ConditionOperator.EXISTS)
        assert len(rules) == 2

    def test_add_rule_defaults_value_to_empty_string(self, form):
        updated = add_rule(form, "sec_about", "fld_email", "showWhen", "age")
        assert updated.get_field("fld_email").logic.show_when.rules[0].value == ""

    def test_add_rule_rejects_self_reference(self, form):
        with pytest.raises(InvalidRuleError):
            add_rule(form, "sec_about", "fld_age", "showWhen", "age")

    def test_add_rule_rejects_unknown_key(self, form):
        with pytest.raises(InvalidRuleError):
            add_rule(form, "sec_about", "fld_age", "showWhen", "nope")

    def test_set_rule_operator_to_exists_serializes_without_value(self):
        rule = set_rule_operator(ConditionRule("age", ConditionOperator.EQ, "3"), "exists")
        f = FormField(field_id="f", key="f", logic=Logic(show_when=ConditionGroup(rules=(rule,))))
        assert field_to_dict(f)["logic"]["showWhen"]["rules"] == [{"fieldKey": "age", "operator": "exists"}]


class TestOptions:

    def test_option_from_label(self):
        assert option_from_label("Option A") == FieldOption("Option A", "option_a")
        assert option_from_label("  Café & Bar! ") == FieldOption("Café & Bar!", "caf__bar")
        assert option_from_label("Full-time  Job") == FieldOption("Full-time  Job", "full-time_job")

    def test_append_bulk_options(self, form):
        updated = append_bulk_options(form, "sec_about", "fld_role", "Volunteer\n\n  Press  \n")
        values = [o.value for o in updated.get_field("fld_role").options]
        assert values == ["student", "professional", "other", "volunteer", "press"]

    def test_blank_text_changes_nothing(self, form):
        assert append_bulk_options(form, "sec_about", "fld_role", "\n  \n") is form


class TestLogicFieldChoices:

    def test_excludes_own_key(self, form):
        keys = [key for key, _label in logic_field_choices(form, exclude_key="age")]
        assert "age" not in keys
        assert keys[0] == "full_name"

    def test_label_falls_back_to_key(self):
        form = FormDefinition(id="f", title="T", sections=[FormSection(id="s", title="S", fields=[
            FormField(field_id="f1", key=" k1 ", label="  "),
            FormField(field_id="f2", key="", label=""),
        ])])
        assert logic_field_choices(form) == [("k1", " k1 "), ("f2", "f2")]

    def test_schema_unchanged_by_listing(self, form):
        before = schema_to_dict(form)
        logic_field_choices(form)
        assert schema_to_dict(form) == before
