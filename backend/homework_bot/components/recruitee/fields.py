"""Typed access to a candidate's custom profile fields.

Absence of a field is a normal condition (the candidate has not filled it in);
a field stored with a different kind than expected is a configuration error.
"""

from __future__ import annotations

from typing import Optional

from ...errors import ConfigurationError
from .types import Candidate, CandidateField, DropdownField, SingleLineField

HOMEWORK_FIELD_NAME = "Hausaufgabe"
GITLAB_USERNAME_FIELD_NAME = "GitLab Account"
GITLAB_REPO_FIELD_NAME = "GitLab Repo"
SALUTATION_FIELD_NAME = "Anrede Override"
SIGNATURE_FIELD_NAME = "Unterschrift Override"


def get_field(candidate: Candidate, name: str) -> Optional[CandidateField]:
    for field in candidate.fields:
        if field.name == name:
            return field
    return None


def get_single_line_field(candidate: Candidate, name: str) -> Optional[SingleLineField]:
    field = get_field(candidate, name)
    if field is None:
        return None
    if not isinstance(field, SingleLineField):
        raise ConfigurationError(
            f"{name} field exists, but is not of type 'single line'. "
            "Please check the profile fields template for candidates."
        )
    return field


def get_dropdown_field(candidate: Candidate, name: str) -> Optional[DropdownField]:
    field = get_field(candidate, name)
    if field is None:
        return None
    if not isinstance(field, DropdownField):
        raise ConfigurationError(
            f"{name} field exists, but is not of type 'dropdown'. "
            "Please check the profile fields template for candidates."
        )
    return field


def single_line_text(candidate: Candidate, name: str) -> Optional[str]:
    field = get_single_line_field(candidate, name)
    if field is None or not field.values:
        return None
    return field.values[0].text


def single_line_texts(candidate: Candidate, name: str) -> list[str]:
    field = get_single_line_field(candidate, name)
    if field is None:
        return []
    return [value.text for value in field.values if value.text]


def dropdown_value(candidate: Candidate, name: str) -> Optional[str]:
    field = get_dropdown_field(candidate, name)
    if field is None or not field.values:
        return None
    return field.values[0].value
