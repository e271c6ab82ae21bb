"""
Form status derivation.

The storage record carries two signals that are not always in sync:
an explicit ``status`` string and a ``latestVersion`` counter. The
counter is treated as the authoritative fallback.
"""
from __future__ import annotations

from typing import Any

from formlogic.coercion import as_mapping, to_optional_number
from formlogic.model import FormStatus


def derive_status(raw: Any) -> FormStatus:
    """
    PUBLISHED if status says so or any version has been published, else DRAFT.

    Examples:
        {"status": "DRAFT", "latestVersion": 2}  -> PUBLISHED
        {"status": "draft", "latestVersion": 0}  -> DRAFT
        {}                                       -> DRAFT
    """
    record = as_mapping(raw)
    status = record.get("status")
    if status is not None and str(status).strip().upper() == FormStatus.PUBLISHED.value:
        return FormStatus.PUBLISHED
    latest_version = to_optional_number(record.get("latestVersion"))
    if latest_version is not None and latest_version > 0:
        return FormStatus.PUBLISHED
    return FormStatus.DRAFT
