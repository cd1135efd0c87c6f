"""Capability checks handed to the report handlers.

``PermissionChecker`` answers whether a user holds a capability over a
course; ``FeatureFlags`` answers whether a root account has a feature
switched on. Both read the LMS tables through the request's session.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Account, Course, Enrollment, FeatureFlag, User

MANAGE_GRADES = "manage_grades"
PLAGIARISM_DETECTION_PLATFORM = "plagiarism_detection_platform"

ENROLLMENT_CAPABILITIES: dict[str, frozenset[str]] = {
    "TeacherEnrollment": frozenset({MANAGE_GRADES}),
    "TaEnrollment": frozenset({MANAGE_GRADES}),
    "DesignerEnrollment": frozenset(),
    "StudentEnrollment": frozenset(),
    "ObserverEnrollment": frozenset(),
}


class PermissionChecker:
    def __init__(self, db: Session):
        self.db = db

    def has_capability(self, user: User, course: Course, capability: str) -> bool:
        enrollment_types = [t for t, caps in ENROLLMENT_CAPABILITIES.items() if capability in caps]
        if not enrollment_types:
            return False
        found = self.db.execute(
            select(Enrollment.id)
            .where(
                Enrollment.user_id == user.id,
                Enrollment.course_id == course.id,
                Enrollment.workflow_state == "active",
                Enrollment.type.in_(enrollment_types),
            )
            .limit(1)
        ).scalar_one_or_none()
        return found is not None


class FeatureFlags:
    def __init__(self, db: Session):
        self.db = db

    def enabled(self, account: Account, feature: str) -> bool:
        flag = self.db.execute(
            select(FeatureFlag).where(FeatureFlag.account_id == account.id, FeatureFlag.feature == feature)
        ).scalar_one_or_none()
        return bool(flag and flag.enabled)
