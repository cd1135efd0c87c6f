"""Persistence for originality reports.

``ReportStore.create`` never raises for an expected failure; it returns one of
``Created``, ``Conflict`` or ``Invalid`` and the caller decides what to render.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import Attachment, OriginalityReport
from .schemas import FieldErrors, OriginalityReportCreate

logger = logging.getLogger(__name__)

DUPLICATE_REPORT_MESSAGE = "the specified file with file_id already has an originality report"
REJECTED_REPORT_MESSAGE = "the originality report could not be saved"


@dataclass(frozen=True)
class Created:
    report: OriginalityReport


@dataclass(frozen=True)
class Conflict:
    errors: FieldErrors


@dataclass(frozen=True)
class Invalid:
    errors: FieldErrors


SaveResult = Created | Conflict | Invalid


class ReportStore:
    def __init__(self, db: Session):
        self.db = db

    def find(self, submission_id: int, file_id: int) -> OriginalityReport | None:
        return self.db.execute(
            select(OriginalityReport).where(
                OriginalityReport.submission_id == submission_id,
                OriginalityReport.file_id == file_id,
            )
        ).scalar_one_or_none()

    def create(self, submission_id: int, params: OriginalityReportCreate) -> SaveResult:
        if params.originality_report_file_id is not None:
            if self.db.get(Attachment, params.originality_report_file_id) is None:
                return Invalid({"originality_report_file_id": ["does not reference an existing file"]})

        report = OriginalityReport(submission_id=submission_id, **params.model_dump())
        self.db.add(report)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            # the unique index is the only guard against concurrent duplicates
            if self.find(submission_id, params.file_id) is not None:
                return Conflict({"base": [DUPLICATE_REPORT_MESSAGE]})
            logger.warning("originality report for submission %s rejected by database: %s", submission_id, e.orig)
            return Invalid({"base": [REJECTED_REPORT_MESSAGE]})

        self.db.refresh(report)
        return Created(report)
