"""
Adapters between storage-service records and the canonical model.

The storage service returns form records with the draft schema embedded
under ``draftSchema`` and version records in either camelCase or
snake_case. These adapters apply the same forgiving policy as the
schema parser: missing values become defaults, nothing raises.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from formlogic.coercion import as_mapping, first_defined, to_optional_number, to_optional_string
from formlogic.config import DEFAULT_FORM_TITLE
from formlogic.model import FormDefinition, FormSummary, FormVersion
from formlogic.serialization import schema_to_dict, sections_from_schema
from formlogic.status import derive_status


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _title(record: Dict[str, Any]) -> str:
    return str(first_defined(record.get("title"), record.get("name"), DEFAULT_FORM_TITLE))


def form_detail_from_record(raw: Any) -> FormDefinition:
    record = as_mapping(raw)
    return FormDefinition(
        id=str(first_defined(record.get("id"), "")),
        title=_title(record),
        status=derive_status(record),
        sections=sections_from_schema(record.get("draftSchema")),
    )


def form_summary_from_record(raw: Any) -> FormSummary:
    record = as_mapping(raw)
    sections = sections_from_schema(record.get("draftSchema"))
    return FormSummary(
        id=str(first_defined(record.get("id"), "")),
        title=_title(record),
        status=derive_status(record),
        section_count=len(sections),
        field_count=sum(len(s.fields) for s in sections),
        updated_at=str(first_defined(record.get("updatedAt"), _now_iso())),
    )


def form_version_from_record(raw: Any) -> FormVersion:
    record = as_mapping(raw)
    version_number = to_optional_number(
        first_defined(record.get("versionNumber"), record.get("version_number"))
    )
    return FormVersion(
        id=str(first_defined(record.get("id"), "")),
        version_number=int(version_number) if version_number is not None else 0,
        published_at=str(first_defined(record.get("publishedAt"), record.get("published_at"), _now_iso())),
        published_by=first_defined(
            to_optional_string(record.get("publishedBy")),
            to_optional_string(record.get("published_by")),
        ),
    )


def draft_payload(form: FormDefinition) -> Dict[str, Any]:
    """Body of a save-draft request to the storage service."""
    return {
        "name": form.title,
        "draftSchema": schema_to_dict(form),
        "draftUi": {},
    }
