"""Originality report handlers.

Both handlers take the caller, the permission checker and the feature-flag
lookup as arguments and run the same gates in the same order:

1. the assignment exists
2. the file exists
3. the submission exists
4. the submission belongs to the assignment and the file to the submission
5. the caller may manage grades in the assignment's course
6. the course's root account has the plagiarism platform enabled

Lookups raise ``NotFound``, a broken relationship raises
``RelationshipMismatch`` and the two capability gates raise
``PermissionDenied`` / ``FeatureDisabled``. None of them are caught here.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .errors import FeatureDisabled, NotFound, ParameterMissing, PermissionDenied, RelationshipMismatch
from .models import Assignment, Attachment, OriginalityReport, Submission, User
from .permissions import MANAGE_GRADES, PLAGIARISM_DETECTION_PLATFORM, FeatureFlags, PermissionChecker
from .schemas import MAX_ID, OriginalityReportCreate, field_errors
from .store import Conflict, Created, Invalid, ReportStore, SaveResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportContext:
    assignment: Assignment
    submission: Submission
    attachment: Attachment


def _get_assignment(db: Session, assignment_id: int) -> Assignment:
    assignment = db.get(Assignment, assignment_id)
    if assignment is None:
        raise NotFound("assignment", assignment_id)
    return assignment


def _get_attachment(db: Session, raw_file_id: Any) -> Attachment:
    # file_id comes straight from the request body, before schema validation
    if raw_file_id is None or isinstance(raw_file_id, bool):
        raise NotFound("file", raw_file_id)
    try:
        file_id = int(raw_file_id)
    except (TypeError, ValueError, OverflowError):
        raise NotFound("file", raw_file_id)
    if not 1 <= file_id <= MAX_ID:
        raise NotFound("file", raw_file_id)
    attachment = db.get(Attachment, file_id)
    if attachment is None:
        raise NotFound("file", raw_file_id)
    return attachment


def _get_submission(db: Session, submission_id: int) -> Submission:
    submission = db.get(Submission, submission_id)
    if submission is None:
        raise NotFound("submission", submission_id)
    return submission


def _load_context(db: Session, assignment: Assignment, submission_id: int, raw_file_id: Any) -> ReportContext:
    attachment = _get_attachment(db, raw_file_id)
    submission = _get_submission(db, submission_id)

    if submission.assignment_id != assignment.id or attachment not in submission.attachments:
        logger.info(
            "file %s is not part of submission %s for assignment %s",
            attachment.id, submission.id, assignment.id,
        )
        raise RelationshipMismatch()

    return ReportContext(assignment=assignment, submission=submission, attachment=attachment)


def _authorize(user: User, assignment: Assignment, permissions: PermissionChecker, features: FeatureFlags) -> None:
    course = assignment.course
    if not permissions.has_capability(user, course, MANAGE_GRADES):
        logger.info("user %s may not manage grades in course %s", user.id, course.id)
        raise PermissionDenied(f"user {user.id} may not manage grades in course {course.id}")
    if not features.enabled(course.root_account, PLAGIARISM_DETECTION_PLATFORM):
        logger.info("plagiarism platform disabled for account %s", course.root_account_id)
        raise FeatureDisabled(PLAGIARISM_DETECTION_PLATFORM)


def create_originality_report(
    db: Session,
    assignment_id: int,
    submission_id: int,
    body: dict[str, Any],
    user: User,
    permissions: PermissionChecker,
    features: FeatureFlags,
) -> SaveResult:
    """Record the originality score of one submitted file.

    ``body`` is the raw request payload; only the allow-listed fields of its
    ``originality_report`` object are used, and ``submission_id`` always comes
    from the path.
    """
    assignment = _get_assignment(db, assignment_id)

    raw_params = body.get("originality_report")
    if not isinstance(raw_params, dict):
        raise ParameterMissing("originality_report")

    ctx = _load_context(db, assignment, submission_id, raw_params.get("file_id"))
    _authorize(user, ctx.assignment, permissions, features)

    try:
        params = OriginalityReportCreate.model_validate(raw_params)
    except ValidationError as e:
        return Invalid(field_errors(e.errors()))

    result = ReportStore(db).create(ctx.submission.id, params)
    if isinstance(result, Created):
        logger.info(
            "originality report %s created for submission %s file %s",
            result.report.id, ctx.submission.id, ctx.attachment.id,
        )
    elif isinstance(result, Conflict):
        logger.warning("duplicate originality report for submission %s file %s", ctx.submission.id, ctx.attachment.id)
    return result


def get_originality_report(
    db: Session,
    assignment_id: int,
    submission_id: int,
    file_id: int,
    user: User,
    permissions: PermissionChecker,
    features: FeatureFlags,
) -> OriginalityReport:
    assignment = _get_assignment(db, assignment_id)
    ctx = _load_context(db, assignment, submission_id, file_id)
    _authorize(user, ctx.assignment, permissions, features)

    report = ReportStore(db).find(ctx.submission.id, ctx.attachment.id)
    if report is None:
        raise NotFound("originality report", file_id)
    return report
