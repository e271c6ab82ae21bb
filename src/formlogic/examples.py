"""
Example form builder.

Builds a small event application form with the constructs the editor
supports: select options, numeric bounds, file constraints, and
showWhen / requireWhen groups that reference other fields by key.
"""
from formlogic.conditions import ConditionGroup, ConditionMode, ConditionOperator, ConditionRule
from formlogic.model import (
    FieldOption,
    FieldType,
    FileConstraints,
    FormDefinition,
    FormField,
    FormSection,
    FormStatus,
    Logic,
    Validation,
)


def build_example_application_form(form_id: str = "form_demo") -> FormDefinition:
    about = FormSection(
        id="sec_about",
        title="About you",
        description="Tell us who you are.",
        fields=[
            FormField(field_id="fld_name", key="full_name", type=FieldType.TEXT,
                      label="Full name", required=True, validation=Validation(min=2, max=80)),
            FormField(field_id="fld_email", key="email", type=FieldType.EMAIL,
                      label="Email", required=True, placeholder="you@example.com"),
            FormField(field_id="fld_age", key="age", type=FieldType.NUMBER,
                      label="Age", validation=Validation(min=16, max=120)),
            FormField(
                field_id="fld_role",
                key="role",
                type=FieldType.SELECT,
                label="Role",
                required=True,
                options=[
                    FieldOption(label="Student", value="student"),
                    FieldOption(label="Professional", value="professional"),
                    FieldOption(label="Other", value="other"),
                ],
            ),
        ],
    )

    # Only students are asked for proof; it becomes mandatory for under-18s.
    student_proof = FormField(
        field_id="fld_proof",
        key="student_proof",
        type=FieldType.FILE,
        label="Proof of enrolment",
        file=FileConstraints(allowed_mime_types=["application/pdf", "image/png"], max_file_size_mb=5, max_files=1),
        logic=Logic(
            show_when=ConditionGroup(rules=(ConditionRule("role", ConditionOperator.EQ, "student"),)),
            require_when=ConditionGroup(
                rules=(
                    ConditionRule("age", ConditionOperator.LT, "18"),
                    ConditionRule("age", ConditionOperator.NOT_EXISTS),
                ),
                mode=ConditionMode.ANY,
            ),
        ),
    )
    other_role = FormField(
        field_id="fld_role_other",
        key="role_other",
        type=FieldType.TEXTAREA,
        label="Describe your role",
        logic=Logic(
            show_when=ConditionGroup(rules=(ConditionRule("role", ConditionOperator.EQ, "other"),)),
        ),
    )
    details = FormSection(
        id="sec_details",
        title="Details",
        fields=[
            student_proof,
            other_role,
            FormField(field_id="fld_note", key="note", type=FieldType.INFO_TEXT,
                      label="We review applications weekly."),
        ],
    )

    return FormDefinition(id=form_id, title="Event Application", status=FormStatus.DRAFT,
                          sections=[about, details])
