"""Salutation and signature for candidate-facing mail."""

from __future__ import annotations

from ...platform.brand import DEFAULT_SIGNATURE, SIGNATURE_SUFFIX
from ..recruitee.fields import SALUTATION_FIELD_NAME, SIGNATURE_FIELD_NAME, get_field, single_line_text, single_line_texts
from ..recruitee.types import Candidate, CandidateReference, SingleLineField

ADMIN_REFERENCE_TYPE = "Admin"


def build_signature_from_names(names: list[str]) -> str:
    if len(names) > 1:
        joined = f"{', '.join(names[:-1])} und {names[-1]}"
    else:
        joined = names[0]
    return f"{joined} {SIGNATURE_SUFFIX}"


def candidate_salutation(candidate: Candidate) -> str:
    # Override fields of another kind are ignored rather than treated as misconfiguration.
    if isinstance(get_field(candidate, SALUTATION_FIELD_NAME), SingleLineField):
        override = (single_line_text(candidate, SALUTATION_FIELD_NAME) or "").strip()
        if override:
            return override
    parts = candidate.name.split()
    return parts[0] if parts else candidate.name


def candidate_signature(candidate: Candidate, references: list[CandidateReference]) -> str:
    if isinstance(get_field(candidate, SIGNATURE_FIELD_NAME), SingleLineField):
        override_names = [name.strip() for name in single_line_texts(candidate, SIGNATURE_FIELD_NAME) if name.strip()]
        if override_names:
            return build_signature_from_names(override_names)

    first_names = [
        reference.first_name
        for reference in references
        if reference.type == ADMIN_REFERENCE_TYPE and reference.first_name
    ]
    if first_names:
        return build_signature_from_names(first_names)
    return DEFAULT_SIGNATURE
