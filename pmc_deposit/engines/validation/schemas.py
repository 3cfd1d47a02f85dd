"""
Structural schemas a deposit must satisfy before it can be confirmed.

These are stricter than the document models in ``pmc_deposit.schemas``:
those accept partially filled forms, these describe a complete submission.
"""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from pmc_deposit.engines.grants.rules import normalize_grant_id
from pmc_deposit.schemas.metadata import FunderKey

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Error type used for every rule-level (non-structural) message
CUSTOM = "custom"


def _required_text(value: Optional[str], message: str) -> Optional[str]:
    if value is None or not value.strip():
        raise PydanticCustomError(CUSTOM, message)
    return value


class _SubmissionSchema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class FileEntrySchema(_SubmissionSchema):
    """One uploaded file in the ``files`` section."""

    name: str
    path: str
    slot: str
    type: Optional[str] = None
    size: Optional[int] = None
    label: Optional[str] = None
    upload_date: Optional[str] = None


class FilesSectionSchema(BaseModel):
    files: Dict[str, FileEntrySchema]


class GrantSchema(_SubmissionSchema):
    id: Optional[str] = None
    funder_key: FunderKey
    grant_id: Optional[str] = Field(default=None, validate_default=True)
    investigator_name: Optional[str] = None
    unique_id: Optional[str] = None

    @field_validator("grant_id")
    @classmethod
    def _grant_id_required(cls, value: Optional[str]) -> Optional[str]:
        if not normalize_grant_id(value):
            raise PydanticCustomError(CUSTOM, "Grant ID is required")
        return value


class PMCSubmissionSchema(_SubmissionSchema):
    """The ``pmc`` section of a deposit ready for confirmation."""

    title: Optional[str] = Field(default=None, validate_default=True)
    journal_name: Optional[str] = Field(default=None, validate_default=True, max_length=255)
    doi_url: Optional[str] = None
    grants: List[GrantSchema] = Field(default_factory=list)
    designate_reviewer: Optional[bool] = None
    reviewer_first_name: Optional[str] = None
    reviewer_last_name: Optional[str] = None
    reviewer_email: Optional[str] = None
    certify_manuscript: Optional[bool] = Field(default=None, validate_default=True)

    @field_validator("title")
    @classmethod
    def _title_required(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Title is required")

    @field_validator("journal_name")
    @classmethod
    def _journal_required(cls, value: Optional[str]) -> Optional[str]:
        return _required_text(value, "Journal name is required")

    @field_validator("reviewer_email")
    @classmethod
    def _reviewer_email_format(cls, value: Optional[str]) -> Optional[str]:
        if value and not EMAIL_PATTERN.match(value.strip()):
            raise PydanticCustomError(CUSTOM, "Enter a valid reviewer email address")
        return value

    @field_validator("certify_manuscript")
    @classmethod
    def _must_certify(cls, value: Optional[bool]) -> Optional[bool]:
        if value is not True:
            raise PydanticCustomError(CUSTOM, "You must certify the manuscript before depositing")
        return value
