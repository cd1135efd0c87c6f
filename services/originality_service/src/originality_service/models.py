import datetime as dt
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from .db import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    feature_flags: Mapped[list["FeatureFlag"]] = relationship(back_populates="account")
    courses: Mapped[list["Course"]] = relationship(back_populates="root_account")


class FeatureFlag(Base):
    __tablename__ = "feature_flags"
    __table_args__ = (UniqueConstraint("account_id", "feature", name="uq_feature_flags_account_feature"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)
    feature: Mapped[str] = mapped_column(String(64), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    account: Mapped[Account] = relationship(back_populates="feature_flags")


class Course(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    root_account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False, index=True)

    root_account: Mapped[Account] = relationship(back_populates="courses")
    assignments: Mapped[list["Assignment"]] = relationship(back_populates="course")


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    enrollments: Mapped[list["Enrollment"]] = relationship(back_populates="user")


class Enrollment(Base):
    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False, index=True)

    # StudentEnrollment / TeacherEnrollment / TaEnrollment / DesignerEnrollment / ObserverEnrollment
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    # active / invited / completed / deleted
    workflow_state: Mapped[str] = mapped_column(String(16), nullable=False, default="active")

    user: Mapped[User] = relationship(back_populates="enrollments")


class Assignment(Base):
    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("courses.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    course: Mapped[Course] = relationship(back_populates="assignments")
    submissions: Mapped[list["Submission"]] = relationship(back_populates="assignment")


class Attachment(Base):
    __tablename__ = "attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False, default="application/octet-stream")
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)


submission_attachments = Table(
    "submission_attachments",
    Base.metadata,
    Column("submission_id", ForeignKey("submissions.id"), primary_key=True),
    Column("attachment_id", ForeignKey("attachments.id"), primary_key=True),
)


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    assignment_id: Mapped[int] = mapped_column(ForeignKey("assignments.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    submitted_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)

    assignment: Mapped[Assignment] = relationship(back_populates="submissions")
    attachments: Mapped[list[Attachment]] = relationship(secondary=submission_attachments)
    originality_reports: Mapped[list["OriginalityReport"]] = relationship(back_populates="submission")


class OriginalityReport(Base):
    __tablename__ = "originality_reports"
    __table_args__ = (
        UniqueConstraint("submission_id", "file_id", name="uq_originality_reports_submission_file"),
        CheckConstraint(
            "originality_score >= 0 AND originality_score <= 1",
            name="ck_originality_reports_score_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(ForeignKey("submissions.id"), nullable=False, index=True)
    file_id: Mapped[int] = mapped_column(ForeignKey("attachments.id"), nullable=False, index=True)
    originality_score: Mapped[float] = mapped_column(Float, nullable=False)

    originality_report_file_id: Mapped[int | None] = mapped_column(ForeignKey("attachments.id"), nullable=True)
    originality_report_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # preferred over originality_report_url by consumers when both are set
    originality_report_lti_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    submission: Mapped[Submission] = relationship(back_populates="originality_reports")
    file: Mapped[Attachment] = relationship(foreign_keys=[file_id])
    report_file: Mapped[Attachment | None] = relationship(foreign_keys=[originality_report_file_id])
