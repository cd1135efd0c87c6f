import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, func, select  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from originality_service.auth import issue_token  # noqa: E402
from originality_service.db import Base, get_db  # noqa: E402
from originality_service.main import app  # noqa: E402
from originality_service.models import (  # noqa: E402
    Account,
    Assignment,
    Attachment,
    Course,
    Enrollment,
    FeatureFlag,
    OriginalityReport,
    Submission,
    User,
)
from originality_service.permissions import PLAGIARISM_DETECTION_PLATFORM  # noqa: E402


@pytest.fixture()
def session_factory(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _enroll(db, user, course, type_, workflow_state="active"):
    db.add(Enrollment(user_id=user.id, course_id=course.id, type=type_, workflow_state=workflow_state))


@pytest.fixture()
def lms(db):
    """A course with the plagiarism platform on, a teacher, a TA, a student and one submitted file."""
    account = Account(name="Root Account")
    db.add(account)
    db.flush()
    db.add(FeatureFlag(account_id=account.id, feature=PLAGIARISM_DETECTION_PLATFORM, enabled=True))

    course = Course(name="Composition 101", root_account_id=account.id)
    teacher = User(name="Teacher")
    ta = User(name="Teaching Assistant")
    student = User(name="Student")
    db.add_all([course, teacher, ta, student])
    db.flush()

    _enroll(db, teacher, course, "TeacherEnrollment")
    _enroll(db, ta, course, "TaEnrollment")
    _enroll(db, student, course, "StudentEnrollment")

    assignment = Assignment(course_id=course.id, title="Essay 1")
    other_assignment = Assignment(course_id=course.id, title="Essay 2")
    attachment = Attachment(display_name="essay.docx", user_id=student.id)
    second_attachment = Attachment(display_name="appendix.pdf", user_id=student.id)
    stray_attachment = Attachment(display_name="unrelated.txt", user_id=student.id)
    report_file = Attachment(display_name="report.pdf")
    db.add_all([assignment, other_assignment, attachment, second_attachment, stray_attachment, report_file])
    db.flush()

    submission = Submission(assignment_id=assignment.id, user_id=student.id)
    submission.attachments.extend([attachment, second_attachment])
    other_submission = Submission(assignment_id=other_assignment.id, user_id=student.id)
    other_submission.attachments.append(attachment)
    db.add_all([submission, other_submission])
    db.commit()

    return SimpleNamespace(
        account=account,
        course=course,
        teacher=teacher,
        ta=ta,
        student=student,
        assignment=assignment,
        other_assignment=other_assignment,
        submission=submission,
        other_submission=other_submission,
        attachment=attachment,
        second_attachment=second_attachment,
        stray_attachment=stray_attachment,
        report_file=report_file,
    )


@pytest.fixture()
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_token(user.id)}"}

    return _headers


@pytest.fixture()
def report_count(db):
    def _count():
        return db.scalar(select(func.count()).select_from(OriginalityReport))

    return _count
