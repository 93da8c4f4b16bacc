"""
Form Catalog

Static catalog of the demo forms Pebbles can fill. Lookups have no side
effects and always return the same immutable FormDefinition.

Usage:
    from services.form.catalog import get_form

    form = get_form(1)
    print([f.label for f in form.fields])
"""

from typing import Dict, List, Union

from core.schemas import FieldSpec, FieldType, FormDefinition
from utils.exceptions import FormNotFoundError


MOCK_FORMS: List[FormDefinition] = [
    FormDefinition(
        id=1,
        title="Job Application",
        description="Apply for the Senior Developer role.",
        fields=(
            FieldSpec(id="entry.2005620554", label="Full Name", type=FieldType.TEXT),
            FieldSpec(id="entry.1045781291", label="Email Address", type=FieldType.EMAIL),
            FieldSpec(id="entry.1065046570", label="Phone Number", type=FieldType.TEXT),
            FieldSpec(id="entry.1166974658", label="Current Company", type=FieldType.TEXT),
            FieldSpec(id="entry.839337160", label="LinkedIn URL", type=FieldType.URL),
            FieldSpec(id="entry.567890123", label="Why do you want this job?", type=FieldType.TEXTAREA),
        ),
    ),
    FormDefinition(
        id=2,
        title="Tech Event Registration",
        description="Register for the upcoming AI Summit.",
        fields=(
            FieldSpec(id="entry.111222333", label="Attendee Name", type=FieldType.TEXT),
            FieldSpec(id="entry.444555666", label="Organization", type=FieldType.TEXT),
            FieldSpec(id="entry.777888999", label="Dietary Restrictions", type=FieldType.TEXT),
        ),
    ),
    FormDefinition(
        id=3,
        title="Doctor Appointment",
        description="Book a consultation with Dr. Smith.",
        fields=(
            FieldSpec(id="entry.121212121", label="Patient Name", type=FieldType.TEXT),
            FieldSpec(id="entry.343434343", label="Preferred Date", type=FieldType.DATE),
            FieldSpec(id="entry.565656565", label="Symptoms", type=FieldType.TEXTAREA),
        ),
    ),
    FormDefinition(
        id=4,
        title="Customer Feedback",
        description="Rate your experience with our service.",
        fields=(
            FieldSpec(id="entry.999000111", label="Name (Optional)", type=FieldType.TEXT),
            FieldSpec(id="entry.222333444", label="Rating (1-5)", type=FieldType.NUMBER),
            FieldSpec(id="entry.555666777", label="Comments", type=FieldType.TEXTAREA),
        ),
    ),
]

_FORMS_BY_ID: Dict[int, FormDefinition] = {form.id: form for form in MOCK_FORMS}


def list_forms() -> List[FormDefinition]:
    """All forms in catalog order."""
    return list(MOCK_FORMS)


def get_form(form_id: Union[int, str]) -> FormDefinition:
    """
    Look up a form by identifier.

    Raises:
        FormNotFoundError: If no form has this id.
    """
    try:
        key = int(form_id)
    except (TypeError, ValueError):
        raise FormNotFoundError(form_id)

    form = _FORMS_BY_ID.get(key)
    if form is None:
        raise FormNotFoundError(form_id)
    return form
