import time

import pytest
from fastapi import HTTPException

from originality_service.auth import decode_token, issue_token
from originality_service.models import Account, Enrollment, User
from originality_service.permissions import (
    MANAGE_GRADES,
    PLAGIARISM_DETECTION_PLATFORM,
    FeatureFlags,
    PermissionChecker,
)


def test_token_round_trip():
    assert decode_token(issue_token(17)) == 17


def test_expired_token_is_rejected():
    token = issue_token(17, exp=int(time.time()) - 60)

    with pytest.raises(HTTPException) as exc_info:
        decode_token(token)

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token expired"


def test_token_signed_with_other_secret_is_rejected():
    import jwt

    token = jwt.encode({"sub": "17"}, "some-other-secret-that-is-long-enough", algorithm="HS256")

    with pytest.raises(HTTPException) as exc_info:
        decode_token(token)

    assert exc_info.value.detail == "Invalid token"


def test_token_for_unknown_user_is_unauthorized(client, lms):
    r = client.post(
        f"/assignments/{lms.assignment.id}/submissions/{lms.submission.id}/originality_report",
        json={"originality_report": {"file_id": lms.attachment.id, "originality_score": 0.5}},
        headers={"Authorization": f"Bearer {issue_token(555555)}"},
    )

    assert r.status_code == 401
    assert r.json()["detail"] == "Unknown user"


def test_manage_grades_by_enrollment_type(db, lms):
    checker = PermissionChecker(db)

    assert checker.has_capability(lms.teacher, lms.course, MANAGE_GRADES)
    assert checker.has_capability(lms.ta, lms.course, MANAGE_GRADES)
    assert not checker.has_capability(lms.student, lms.course, MANAGE_GRADES)


def test_unenrolled_user_has_no_capability(db, lms):
    outsider = User(name="Outsider")
    db.add(outsider)
    db.commit()

    assert not PermissionChecker(db).has_capability(outsider, lms.course, MANAGE_GRADES)


def test_designer_cannot_manage_grades(db, lms):
    designer = User(name="Designer")
    db.add(designer)
    db.flush()
    db.add(Enrollment(user_id=designer.id, course_id=lms.course.id, type="DesignerEnrollment"))
    db.commit()

    assert not PermissionChecker(db).has_capability(designer, lms.course, MANAGE_GRADES)


def test_unknown_capability_is_never_granted(db, lms):
    assert not PermissionChecker(db).has_capability(lms.teacher, lms.course, "launch_rockets")


def test_feature_flags(db, lms):
    flags = FeatureFlags(db)
    bare_account = Account(name="No Flags")
    db.add(bare_account)
    db.commit()

    assert flags.enabled(lms.account, PLAGIARISM_DETECTION_PLATFORM)
    assert not flags.enabled(lms.account, "some_other_feature")
    assert not flags.enabled(bare_account, PLAGIARISM_DETECTION_PLATFORM)
