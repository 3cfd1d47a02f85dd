"""
Whole-deposit validation run before confirmation.

Both structural schemas run and all of their issues are collected, then the
conditional rules append their own issues. Two passes follow: redundant
generic issues are dropped where a specific rule already explains the
problem, and per-grant "Grant ID is required" messages are rewritten to name
the funder and position.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError

from pmc_deposit.engines.grants.funders import funder_abbreviation
from pmc_deposit.engines.grants.rules import normalize_grant_id
from pmc_deposit.engines.validation.schemas import (
    CUSTOM,
    FilesSectionSchema,
    PMCSubmissionSchema,
)
from pmc_deposit.schemas.common import (
    INVALID_TYPE,
    ActionResult,
    ValidationIssue,
    issues_from_validation_error,
)
from pmc_deposit.schemas.metadata import HHMI, MANUSCRIPT_SLOT

MANUSCRIPT_REQUIRED = "At least one manuscript file is required"
HHMI_RECIPIENT_REQUIRED = "Select the HHMI Award recipient"
HHMI_GRANT_ID_REQUIRED = "HHMI grant must have a Grant ID"
GRANT_ID_REQUIRED = "Grant ID is required"

_HHMI_MESSAGES = (HHMI_RECIPIENT_REQUIRED, HHMI_GRANT_ID_REQUIRED)
_GRANT_ID_PATH = re.compile(r"^grants\.(\d+)\.grantId$")


def schema_issues(schema: Type[BaseModel], value: Any) -> List[ValidationIssue]:
    """Validate ``value`` against ``schema`` and return every issue found."""
    try:
        schema.model_validate(value)
    except ValidationError as exc:
        return issues_from_validation_error(exc)
    return []


def conditional_issues(files: Any, pmc: Any) -> List[ValidationIssue]:
    """Rules that span fields or depend on other sections."""
    issues: List[ValidationIssue] = []

    file_entries = files.values() if isinstance(files, Mapping) else []
    has_manuscript = any(
        isinstance(entry, Mapping) and entry.get("slot") == MANUSCRIPT_SLOT
        for entry in file_entries
    )
    if not has_manuscript:
        issues.append(ValidationIssue(code=CUSTOM, message=MANUSCRIPT_REQUIRED, path=["files"]))

    pmc = pmc if isinstance(pmc, Mapping) else {}
    grants = [g for g in pmc.get("grants") or [] if isinstance(g, Mapping)]
    if grants:
        hhmi = next((g for g in grants if g.get("funderKey") == HHMI), None)
        if hhmi is None:
            issues.append(ValidationIssue(code=CUSTOM, message=HHMI_RECIPIENT_REQUIRED, path=["grants"]))
        elif not normalize_grant_id(hhmi.get("grantId")):
            issues.append(ValidationIssue(code=CUSTOM, message=HHMI_GRANT_ID_REQUIRED, path=["grants"]))

    if pmc.get("designateReviewer"):
        for key, label in (
            ("reviewerFirstName", "Reviewer first name"),
            ("reviewerLastName", "Reviewer last name"),
            ("reviewerEmail", "Reviewer email"),
        ):
            if not (pmc.get(key) or "").strip():
                issues.append(ValidationIssue(code=CUSTOM, message=f"{label} is required", path=[key]))

    return issues


def drop_redundant_issues(issues: List[ValidationIssue]) -> List[ValidationIssue]:
    has_manuscript_issue = any(
        i.dotted_path == "files" and i.message == MANUSCRIPT_REQUIRED for i in issues
    )
    has_hhmi_issue = any(
        i.dotted_path == "grants" and i.message in _HHMI_MESSAGES for i in issues
    )

    kept = []
    for issue in issues:
        if has_manuscript_issue and issue.dotted_path == "files" and issue.code == INVALID_TYPE:
            continue
        if (
            has_hhmi_issue
            and issue.dotted_path == "grants.0.grantId"
            and issue.message == GRANT_ID_REQUIRED
        ):
            continue
        kept.append(issue)
    return kept


def improve_grant_messages(issues: List[ValidationIssue], pmc: Any) -> List[ValidationIssue]:
    grants = (pmc.get("grants") if isinstance(pmc, Mapping) else None) or []

    improved = []
    for issue in issues:
        match = _GRANT_ID_PATH.match(issue.dotted_path)
        if match and issue.message == GRANT_ID_REQUIRED:
            index = int(match.group(1))
            grant = grants[index] if index < len(grants) else None
            if index > 0 and isinstance(grant, Mapping) and grant.get("funderKey"):
                abbreviation = funder_abbreviation(grant["funderKey"])
                issue = issue.model_copy(
                    update={"message": f"Grant {index + 1} - {abbreviation} Grant ID is required"}
                )
        improved.append(issue)
    return improved


def validate_pmc_metadata(metadata: Optional[Mapping[str, Any]]) -> ActionResult:
    """
    Validate a WorkVersion metadata document (``files`` + ``pmc`` sections).

    Returns a success result, or an error result whose ``validation_errors``
    lists files issues, then pmc issues, then conditional-rule issues.
    """
    metadata = metadata or {}
    files = metadata.get("files")
    pmc = metadata.get("pmc")

    issues: List[ValidationIssue] = []
    issues.extend(schema_issues(FilesSectionSchema, {"files": files}))
    issues.extend(schema_issues(PMCSubmissionSchema, pmc))
    issues.extend(conditional_issues(files, pmc))

    issues = improve_grant_messages(drop_redundant_issues(issues), pmc)

    if issues:
        details: Dict[str, Any] = {
            "issues": [i.model_dump() for i in issues],
            "name": "ValidationError",
        }
        return ActionResult.fail(
            "Validation failed",
            status_code=422,
            validation_errors=issues,
            **details,
        )
    return ActionResult.ok()
