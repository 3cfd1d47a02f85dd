"""
Common result types shared by every operation.

Operations return an ActionResult instead of raising: either ``success`` or
an ``error`` (plus path-tagged ``validation_errors`` when input failed a
schema or business rule).
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

# Code for structural (missing or wrong-type) issues
INVALID_TYPE = "invalid_type"


class ValidationIssue(BaseModel):
    """One path-tagged validation problem."""

    code: str
    message: str
    path: List[Union[str, int]] = Field(default_factory=list)

    @property
    def dotted_path(self) -> str:
        return ".".join(str(p) for p in self.path)


def issue_code(error_type: str) -> str:
    if error_type == "missing" or error_type.endswith("_type"):
        return INVALID_TYPE
    return error_type


def issues_from_validation_error(exc: ValidationError) -> List[ValidationIssue]:
    """Convert a pydantic ValidationError into path-tagged issues, in error order."""
    return [
        ValidationIssue(
            code=issue_code(error["type"]),
            message=error["msg"],
            path=list(error["loc"]),
        )
        for error in exc.errors()
    ]


class GeneralError(BaseModel):
    """Error payload returned to the UI layer."""

    type: str = "general"
    message: str
    intent: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class ActionResult(BaseModel):
    """Tagged success/error result."""

    success: bool = False
    error: Optional[GeneralError] = None
    validation_errors: Optional[List[ValidationIssue]] = None
    data: Optional[Dict[str, Any]] = None

    # HTTP status the route layer should use; not part of the payload
    status_code: int = Field(default=200, exclude=True)

    @classmethod
    def ok(cls, **data: Any) -> "ActionResult":
        return cls(success=True, data=data or None)

    @classmethod
    def fail(
        cls,
        message: str,
        *,
        status_code: int = 500,
        intent: Optional[str] = None,
        validation_errors: Optional[List[ValidationIssue]] = None,
        **details: Any,
    ) -> "ActionResult":
        return cls(
            error=GeneralError(message=message, intent=intent, details=details),
            validation_errors=validation_errors,
            status_code=status_code,
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
