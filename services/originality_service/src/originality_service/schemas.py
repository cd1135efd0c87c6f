from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator

# largest id an INTEGER primary key can hold
MAX_ID = 2**63 - 1


class OriginalityReportCreate(BaseModel):
    # unknown keys (including a body submission_id) are dropped, not rejected
    model_config = ConfigDict(extra="ignore")

    file_id: int = Field(ge=1, le=MAX_ID)
    originality_score: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)
    originality_report_file_id: int | None = Field(default=None, ge=1, le=MAX_ID)
    originality_report_url: str | None = None
    originality_report_lti_url: str | None = None

    @field_validator("file_id", "originality_score", "originality_report_file_id", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value


class OriginalityReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_id: int
    originality_score: float
    originality_report_file_id: int | None = None
    originality_report_url: str | None = None
    originality_report_lti_url: str | None = None


FieldErrors = dict[str, list[str]]


def field_errors(errors: Iterable[dict], skip: int = 0) -> FieldErrors:
    """Flatten pydantic errors into ``{"field": ["message", ...]}``.

    ``skip`` drops leading ``loc`` parts, e.g. fastapi's ``"path"``/``"body"``.
    """
    result: FieldErrors = {}
    for err in errors:
        field = ".".join(str(part) for part in err["loc"][skip:]) or "base"
        result.setdefault(field, []).append(err["msg"])
    return result
