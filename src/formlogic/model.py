"""
Core Form Model Objects

Defines the canonical, in-memory representation of a form definition.

These are pure data classes representing:
    - Fields (typed questions with validation and UI hints)
    - Sections (ordered groups of fields)
    - Form definitions (root container)
    - Form summaries and published versions (list views)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about the persisted JSON shape
        - Know nothing about how rules are evaluated
        - Represent structure, not behavior

    Parsing and serialization live in formlogic.serialization.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Set

from .conditions import ConditionGroup


class FieldType(Enum):
    """
    Canonical field kinds understood by the editor and the renderer.

    Persisted type tokens ("multiselect", "file_upload", ...) are mapped
    onto these by the serializer. See formlogic.config for the tables.
    """

    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    NUMBER = "NUMBER"
    SELECT = "SELECT"
    MULTISELECT = "MULTISELECT"
    CHECKBOX = "CHECKBOX"
    DATE = "DATE"
    FILE = "FILE"
    INFO_TEXT = "INFO_TEXT"


class FormStatus(Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


@dataclass(frozen=True)
class FieldOption:
    """One choice of a select / multi-select field."""

    label: str
    value: str


@dataclass
class Validation:
    """
    Answer constraints for a field.

    Properties:
        min / max:
            Character length bounds for text kinds,
            numeric bounds for NUMBER fields
        pattern:
            Regular expression the answer must match
        allowed_types:
            Accepted content types; the same logical set as
            FileConstraints.allowed_mime_types
    """

    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None
    allowed_types: Optional[List[str]] = None


@dataclass
class FileConstraints:
    """Upload limits for FILE fields."""

    allowed_mime_types: Optional[List[str]] = None
    max_file_size_mb: Optional[float] = None
    max_files: Optional[float] = None


@dataclass(frozen=True)
class Logic:
    """
    Conditional behavior of a field.

    INVARIANT:
        At least one of show_when / require_when is set.
        A field without conditions has logic=None, never an empty Logic.
        Use Logic.from_groups() when either side may be missing.
    """

    show_when: Optional[ConditionGroup] = None
    require_when: Optional[ConditionGroup] = None

    def __post_init__(self) -> None:
        if self.show_when is None and self.require_when is None:
            raise ValueError("Logic requires show_when or require_when")

    @classmethod
    def from_groups(
        cls,
        show_when: Optional[ConditionGroup],
        require_when: Optional[ConditionGroup],
    ) -> Optional["Logic"]:
        if show_when is None and require_when is None:
            return None
        return cls(show_when=show_when, require_when=require_when)

    def groups(self) -> Iterator[ConditionGroup]:
        for group in (self.show_when, self.require_when):
            if group is not None:
                yield group


@dataclass
class FormField:
    """
    A single question in a section.

    Properties:
        field_id:
            Internal identifier. Generated once, never edited.

        key:
            Identifier seen by answers and by other fields' rules.
            User-editable; falls back to field_id when blank.

        type:
            FieldType

        options:
            Choices for SELECT / MULTISELECT

        validation / file / logic:
            Optional blocks; None when they would be empty

    IMPORTANT:
        Two fields may share a key. Nothing here prevents it;
        formlogic.analyzer reports it.
    """

    field_id: str
    key: str
    type: FieldType = FieldType.TEXT
    label: str = ""
    required: bool = False
    placeholder: Optional[str] = None
    description: Optional[str] = None
    options: Optional[List[FieldOption]] = None
    validation: Optional[Validation] = None
    file: Optional[FileConstraints] = None
    logic: Optional[Logic] = None

    @property
    def effective_key(self) -> str:
        """The key as it is persisted: trimmed, or the field id if blank."""
        return (self.key or "").strip() or self.field_id


@dataclass
class FormSection:
    """An ordered group of fields. Order of sections and fields is significant."""

    id: str
    title: str
    description: Optional[str] = None
    fields: List[FormField] = field(default_factory=list)

    def get_field(self, field_id: str) -> Optional[FormField]:
        for form_field in self.fields:
            if form_field.field_id == field_id:
                return form_field
        return None


@dataclass
class FormDefinition:
    """
    Root container for a form being edited.

    Properties:
        id: Form identifier assigned by the storage service
        title: Display name
        status: FormStatus (derived, see formlogic.status)
        sections: Ordered sections
    """

    id: str
    title: str
    status: FormStatus = FormStatus.DRAFT
    sections: List[FormSection] = field(default_factory=list)

    def get_section(self, section_id: str) -> Optional[FormSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def iter_fields(self) -> Iterator[FormField]:
        for section in self.sections:
            yield from section.fields

    def get_field(self, field_id: str) -> Optional[FormField]:
        for form_field in self.iter_fields():
            if form_field.field_id == field_id:
                return form_field
        return None

    def find_fields_by_key(self, key: str) -> List[FormField]:
        return [f for f in self.iter_fields() if f.effective_key == key]

    def field_keys(self) -> Set[str]:
        return {f.effective_key for f in self.iter_fields()}

    @property
    def field_count(self) -> int:
        return sum(len(section.fields) for section in self.sections)


@dataclass
class FormSummary:
    """List-view row for a form."""

    id: str
    title: str
    status: FormStatus
    section_count: int
    field_count: int
    updated_at: str


@dataclass
class FormVersion:
    """A published, immutable snapshot of a form's schema."""

    id: str
    version_number: int
    published_at: str
    published_by: Optional[str] = None
