"""
Form input schemas, one per action intent.

Form values arrive as strings (HTML forms) or JSON scalars. Each action
looks up its schema by intent in FORM_SCHEMAS and runs through
``with_valid_form_data`` so every action reports bad input the same way.
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from pmc_deposit.engines.doi.identifiers import extract_doi
from pmc_deposit.engines.validation.schemas import CUSTOM, EMAIL_PATTERN
from pmc_deposit.schemas.common import ActionResult, issues_from_validation_error
from pmc_deposit.schemas.metadata import FunderKey


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


def _form_flag(value: Any) -> Optional[bool]:
    """'true' -> True, 'false' -> False, anything else -> None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "on"):
            return True
        if lowered == "false":
            return False
    return None


class FormSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class AddGrantForm(FormSchema):
    funder_key: FunderKey = Field(alias="funderKey")
    grant_id: str = Field(alias="grantId", min_length=1)
    investigator_name: Optional[str] = Field(default=None, alias="investigatorName")
    unique_id: Optional[str] = Field(default=None, alias="uniqueId")


class RemoveGrantForm(FormSchema):
    id: str = Field(min_length=1)


class UpdateGrantForm(FormSchema):
    index: int = Field(ge=0)
    grant_id: str = Field(alias="grantId", min_length=1)


class SetInitialHHMIGrantForm(FormSchema):
    grant_id: str = Field(alias="grantId", min_length=1)
    investigator_name: Optional[str] = Field(default=None, alias="investigatorName")
    unique_id: Optional[str] = Field(default=None, alias="uniqueId")


class ClearInitialHHMIGrantForm(FormSchema):
    unique_id: str = Field(alias="uniqueId")


class CertifyForm(FormSchema):
    certify: Optional[bool] = None

    @field_validator("certify", mode="before")
    @classmethod
    def _parse(cls, value: Any) -> Optional[bool]:
        return _form_flag(value)


class DesignateReviewerForm(FormSchema):
    designate_reviewer: bool = Field(default=False, alias="designateReviewer")

    @field_validator("designate_reviewer", mode="before")
    @classmethod
    def _parse(cls, value: Any) -> bool:
        return _form_flag(value) is True


class ReviewerFirstNameForm(FormSchema):
    first_name: Optional[str] = Field(default=None, alias="firstName")

    @field_validator("first_name", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ReviewerLastNameForm(FormSchema):
    last_name: Optional[str] = Field(default=None, alias="lastName")

    @field_validator("last_name", mode="before")
    @classmethod
    def _blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class ReviewerEmailForm(FormSchema):
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _check(cls, value: Any) -> Optional[str]:
        value = _blank_to_none(value)
        if value is not None and not EMAIL_PATTERN.match(str(value).strip()):
            raise PydanticCustomError(CUSTOM, "Enter a valid reviewer email address")
        return value


class PublicationTitleForm(FormSchema):
    title: str = ""


class PublicationJournalNameForm(FormSchema):
    journal_name: str = Field(
        default="",
        alias="journalName",
        max_length=255,
    )


class DoiLookupForm(FormSchema):
    doi: str

    @field_validator("doi")
    @classmethod
    def _extract(cls, value: str) -> str:
        doi = extract_doi(value)
        if doi is None:
            raise PydanticCustomError(CUSTOM, "Does not appear to be a valid DOI")
        return doi


FORM_SCHEMAS: Dict[str, Type[FormSchema]] = {
    "grant-add": AddGrantForm,
    "grant-remove": RemoveGrantForm,
    "grant-update": UpdateGrantForm,
    "initial-hhmi-grant-set": SetInitialHHMIGrantForm,
    "initial-hhmi-grant-clear": ClearInitialHHMIGrantForm,
    "certify-manuscript": CertifyForm,
    "designate-reviewer": DesignateReviewerForm,
    "reviewer-first-name": ReviewerFirstNameForm,
    "reviewer-last-name": ReviewerLastNameForm,
    "reviewer-email": ReviewerEmailForm,
    "publication-title": PublicationTitleForm,
    "publication-journal-name": PublicationJournalNameForm,
    "doi-lookup": DoiLookupForm,
}

FormHandler = Callable[[Any], Awaitable[ActionResult]]


async def with_valid_form_data(
    intent: str,
    form: Mapping[str, Any],
    handler: FormHandler,
) -> ActionResult:
    """
    Validate ``form`` against the schema for ``intent`` and run ``handler``.

    Invalid input returns a 422 result tagged with the intent, carrying the
    first issue's message and every issue found. Errors from the handler are
    tagged with the intent too.
    """
    schema = FORM_SCHEMAS[intent]
    try:
        data = schema.model_validate(dict(form))
    except ValidationError as exc:
        issues = issues_from_validation_error(exc)
        return ActionResult.fail(
            issues[0].message if issues else "Invalid form data",
            status_code=422,
            intent=intent,
            validation_errors=issues,
        )

    result = await handler(data)
    if result.error is not None and result.error.intent is None:
        result.error.intent = intent
    return result
