"""
Typed views of the PMC metadata documents.

Documents are stored as JSON with camelCase keys (shared with the host
platform); the models expose snake_case attributes through an alias
generator and keep unknown keys so nothing written by other extensions is
dropped on a round trip.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for stored documents: camelCase on the wire, extras preserved."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class FunderKey(str, Enum):
    """Funders accepted on a PMC deposit."""

    HHMI = "hhmi"
    NIH = "nih"
    AHRQ = "ahrq"
    ACL = "acl"
    ASPR = "aspr"
    CDC = "cdc"
    EPA = "epa"
    FDA = "fda"
    NASA = "nasa"
    NIST = "nist"
    VA = "va"
    DHS = "dhs"


HHMI = FunderKey.HHMI.value

# Slot that manuscript files must occupy
MANUSCRIPT_SLOT = "pmc/manuscript"


class GrantEntry(CamelModel):
    """One funding-grant reference inside ``pmc.grants``."""

    id: str
    funder_key: str
    grant_id: str = ""
    # HHMI-only fields
    investigator_name: Optional[str] = None
    unique_id: Optional[str] = None

    @field_validator("grant_id", mode="before")
    @classmethod
    def _null_grant_id(cls, value: Any) -> Any:
        # Older documents store a missing grant id as null
        return "" if value is None else value

    @property
    def is_hhmi(self) -> bool:
        return self.funder_key == HHMI


class DoiAuthor(CamelModel):
    given: Optional[str] = None
    family: Optional[str] = None
    sequence: Optional[str] = None


class PMCMetadataSection(CamelModel):
    """
    The ``pmc`` sub-document of a WorkVersion.

    Every field is optional here; completeness is checked by the validators
    before confirmation, not on every write.
    """

    title: Optional[str] = None
    journal_name: Optional[str] = None
    issn: Optional[str] = None
    issn_type: Optional[Literal["print", "electronic"]] = None

    doi_url: Optional[str] = None
    doi_success: Optional[bool] = None
    doi_title: Optional[str] = None
    doi_published_date: Optional[str] = None
    doi_container_title: Optional[str] = None
    doi_short_container_title: Optional[Any] = None
    doi_authors: Optional[List[DoiAuthor]] = None
    doi_type: Optional[str] = None
    doi_volume: Optional[str] = None
    doi_issue: Optional[str] = None
    doi_page: Optional[str] = None
    doi_source: Optional[str] = None
    doi_publisher: Optional[str] = None

    grants: Optional[List[GrantEntry]] = None
    # Legacy flat funder list, superseded by grants
    funders: Optional[List[str]] = None

    owner_first_name: Optional[str] = None
    owner_last_name: Optional[str] = None

    designate_reviewer: Optional[bool] = None
    reviewer_first_name: Optional[str] = None
    reviewer_last_name: Optional[str] = None
    reviewer_email: Optional[str] = None

    certify_manuscript: Optional[bool] = None
    previewed: Optional[bool] = None
    confirmed: Optional[bool] = None


# ---------------------------------------------------------------------------
# Patch merge strategies
# ---------------------------------------------------------------------------

class MergeStrategy(str, Enum):
    """How a patched value combines with the stored one."""

    REPLACE = "replace"              # scalars
    SHALLOW_MERGE = "shallow_merge"  # objects: one level deep, incoming keys win
    FULL_REPLACE = "full_replace"    # arrays: the incoming list replaces the stored one


def _strategy_for(annotation: Any) -> MergeStrategy:
    candidates = get_args(annotation) if get_origin(annotation) is Union else (annotation,)
    for candidate in candidates:
        origin = get_origin(candidate) or candidate
        if origin is list:
            return MergeStrategy.FULL_REPLACE
        if origin is dict or (isinstance(origin, type) and issubclass(origin, BaseModel)):
            return MergeStrategy.SHALLOW_MERGE
    return MergeStrategy.REPLACE


# Keyed by stored (camelCase) key, derived once from the section model
PMC_MERGE_STRATEGIES: Dict[str, MergeStrategy] = {
    to_camel(name): _strategy_for(info.annotation)
    for name, info in PMCMetadataSection.model_fields.items()
}


def merge_patch_value(key: str, current: Any, incoming: Any) -> Any:
    """
    Combine one patched key with its stored value.

    Known keys use their declared strategy. Unknown keys fall back to the
    value shapes: two non-array objects merge one level deep, anything else
    is replaced.
    """
    strategy = PMC_MERGE_STRATEGIES.get(key)
    if strategy is None:
        strategy = (
            MergeStrategy.SHALLOW_MERGE
            if isinstance(incoming, dict)
            else MergeStrategy.REPLACE
        )
    if strategy is MergeStrategy.SHALLOW_MERGE and isinstance(incoming, dict):
        base = current if isinstance(current, dict) else {}
        return {**base, **incoming}
    if strategy is MergeStrategy.FULL_REPLACE and incoming is not None:
        return list(incoming)
    return incoming


def apply_pmc_patch(pmc: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return ``pmc`` with every key of ``patch`` merged in.

    A value of None clears the key.
    """
    updated = dict(pmc)
    for key, value in patch.items():
        merged = merge_patch_value(key, updated.get(key), value)
        if merged is None:
            updated.pop(key, None)
        else:
            updated[key] = merged
    return updated


PMCTransform = Callable[[Dict[str, Any]], Dict[str, Any]]


# ---------------------------------------------------------------------------
# Submission-version metadata
# ---------------------------------------------------------------------------

class ProcessingMessage(CamelModel):
    """One recorded processing outcome for a submission version."""

    type: Literal["info", "warning", "error"]
    message: str = ""
    timestamp: str
    from_status: str
    to_status: str
    message_id: str
    processor: str


class EmailProcessing(CamelModel):
    """Processing history stored under ``pmc.emailProcessing``."""

    message_id: str
    last_processed_at: str
    package_id: str
    status: Literal["ok", "warning", "error"]
    # History is kept as written; older entries may lack fields
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    manuscript_id: Optional[str] = None


class ProcessingResult(BaseModel):
    """Outcome of processing one inbound signal for a deposit."""

    status: Literal["success", "warning", "error"]
    message: str = ""
    manuscript_id: Optional[str] = None
