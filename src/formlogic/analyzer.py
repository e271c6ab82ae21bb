"""
Form Analyzer: structural checks over an assembled FormDefinition.

The parser deliberately accepts anything. This module is the separate
pass an editor (or a publish step) runs before trusting the model:
    - Rules that reference keys no field carries
    - Rules that reference their own field
    - Keys shared by more than one field
    - Rule values that disagree with their operator
    - Cycles between fields' conditions

IMPORTANT: This does NOT modify the form.
It only produces read-only reports.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from formlogic.conditions import ConditionGroup, operator_needs_value
from formlogic.model import FormDefinition, FormField

# (field key owning the rule, logic group name, referenced key)
RuleRef = Tuple[str, str, str]


class FormValidationError(ValueError):
    """Raised by ensure_valid() when a form has structural issues."""

    def __init__(self, issues: List[str]):
        self.issues = list(issues)
        super().__init__("; ".join(self.issues))


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


def _named_groups(form_field: FormField) -> List[Tuple[str, ConditionGroup]]:
    if form_field.logic is None:
        return []
    named = []
    if form_field.logic.show_when is not None:
        named.append(("showWhen", form_field.logic.show_when))
    if form_field.logic.require_when is not None:
        named.append(("requireWhen", form_field.logic.require_when))
    return named


@dataclass
class FormReport:
    """Analysis report for a form."""

    form_id: str
    total_sections: int = 0
    total_fields: int = 0
    fields_with_logic: int = 0
    total_rules: int = 0

    duplicate_keys: Dict[str, List[str]] = field(default_factory=dict)  # key -> field ids
    dangling_references: List[RuleRef] = field(default_factory=list)
    self_references: List[RuleRef] = field(default_factory=list)
    missing_values: List[RuleRef] = field(default_factory=list)
    unexpected_values: List[RuleRef] = field(default_factory=list)

    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    issues: List[str] = field(default_factory=list)

    def add_issue(self, msg: str) -> None:
        if msg not in self.issues:
            self.issues.append(msg)

    @property
    def is_valid(self) -> bool:
        return not self.issues


def analyze_form(form: FormDefinition) -> FormReport:
    """
    Inspect a form's keys and conditional logic.

    Returns a FormReport; report.is_valid is True when no issue was found.
    """
    report = FormReport(form_id=form.id)
    report.total_sections = len(form.sections)

    fields_by_key: Dict[str, List[str]] = defaultdict(list)
    for f in form.iter_fields():
        report.total_fields += 1
        fields_by_key[f.effective_key].append(f.field_id)

    report.duplicate_keys = {k: ids for k, ids in fields_by_key.items() if len(ids) > 1}

    # Dependency edges: referenced key -> dependent key
    depends_on: Dict[str, List[str]] = defaultdict(list)

    for f in form.iter_fields():
        groups = _named_groups(f)
        if not groups:
            continue
        report.fields_with_logic += 1
        owner = f.effective_key
        for group_name, group in groups:
            for rule in group.rules:
                report.total_rules += 1
                ref = (owner, group_name, rule.field_key)
                if rule.field_key == owner:
                    report.self_references.append(ref)
                elif rule.field_key not in fields_by_key:
                    report.dangling_references.append(ref)
                else:
                    depends_on[rule.field_key].append(owner)
                if operator_needs_value(rule.operator) and rule.value is None:
                    report.missing_values.append(ref)
                elif not operator_needs_value(rule.operator) and rule.value is not None:
                    report.unexpected_values.append(ref)

    visited: Set[str] = set()
    for key in list(depends_on.keys()):
        if key not in visited:
            cycle = _find_cycles_dfs(depends_on, key, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    for key, ids in sorted(report.duplicate_keys.items()):
        report.add_issue(f"Duplicate field key {key!r} on fields: {', '.join(ids)}")
    for owner, group_name, ref in report.dangling_references:
        report.add_issue(f"{owner}.{group_name} references unknown field key {ref!r}")
    for owner, group_name, _ref in report.self_references:
        report.add_issue(f"{owner}.{group_name} references its own field")
    for owner, group_name, ref in report.missing_values:
        report.add_issue(f"{owner}.{group_name} rule on {ref!r} needs a value")
    for owner, group_name, ref in report.unexpected_values:
        report.add_issue(f"{owner}.{group_name} rule on {ref!r} must not carry a value")
    if report.has_cycles:
        report.add_issue(f"Condition cycle detected: {' -> '.join(report.cycle_example)}")

    return report


def ensure_valid(form: FormDefinition) -> FormReport:
    """Run analyze_form and raise FormValidationError if anything was found."""
    report = analyze_form(form)
    if not report.is_valid:
        raise FormValidationError(report.issues)
    return report
