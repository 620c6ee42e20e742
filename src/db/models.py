import re
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import declarative_base, relationship

# Define naming conventions for constraints and indexes
# https://alembic.sqlalchemy.org/en/latest/naming.html
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)
Base = declarative_base(metadata=metadata)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(50), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    personality_type = Column(String(4), nullable=True)
    points = Column(Integer, nullable=False, default=0)
    last_login_on = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    point_transactions = relationship("PointTransaction", back_populates="user", cascade="all, delete-orphan")


class PointTransaction(Base):
    __tablename__ = "point_transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Integer, nullable=False)
    reason = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user = relationship("User", back_populates="point_transactions")

    __table_args__ = (
        Index("ix_point_transactions_user_id_created_at", "user_id", "created_at"),
    )


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=False)
    instructions = Column(String(1000), nullable=True)
    published = Column(Boolean, nullable=False, default=False, index=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    questions = relationship(
        "Question",
        back_populates="assessment",
        cascade="all, delete-orphan",
        order_by="Question.position",
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assessment_id = Column(Uuid(as_uuid=True), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False)
    external_id = Column(String(32), nullable=False)
    position = Column(Integer, nullable=False)
    group = Column(String(2), nullable=False)
    text = Column(String(500), nullable=False)
    options = Column(JSON, nullable=False) # [{"text": ..., "value": "E"}, {"text": ..., "value": "I"}]

    assessment = relationship("Assessment", back_populates="questions")

    __table_args__ = (
        UniqueConstraint("assessment_id", "position", name="uq_questions_assessment_position"),
        UniqueConstraint("assessment_id", "external_id", name="uq_questions_assessment_external_id"),
    )


class Result(Base):
    __tablename__ = "results"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    assessment_id = Column(Uuid(as_uuid=True), ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False)
    # Exactly one owner: a registered user or a guest.
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True)
    guest_id = Column(String(64), nullable=True)

    answers = Column(JSON, nullable=False)

    extrovert = Column(Integer, nullable=False)
    introvert = Column(Integer, nullable=False)
    sensory = Column(Integer, nullable=False)
    intuitive = Column(Integer, nullable=False)
    thinking = Column(Integer, nullable=False)
    feeling = Column(Integer, nullable=False)
    judging = Column(Integer, nullable=False)
    perceiving = Column(Integer, nullable=False)

    personality_type = Column(String(4), nullable=False, index=True)
    alternative_type_1 = Column(String(4), nullable=True)
    alternative_type_2 = Column(String(4), nullable=True)

    time_taken = Column(Integer, nullable=True) # seconds
    is_active = Column(Boolean, nullable=False, default=True)
    completed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (
        CheckConstraint("(user_id IS NULL) <> (guest_id IS NULL)", name="single_owner"),
        Index("ix_results_user_id_is_active", "user_id", "is_active"),
        Index("ix_results_guest_id_is_active", "guest_id", "is_active"),
        Index("ix_results_assessment_id", "assessment_id"),
    )

    @property
    def scores(self) -> dict:
        return {
            "extrovert": self.extrovert,
            "introvert": self.introvert,
            "sensory": self.sensory,
            "intuitive": self.intuitive,
            "thinking": self.thinking,
            "feeling": self.feeling,
            "judging": self.judging,
            "perceiving": self.perceiving,
        }

    @property
    def alternative_types(self) -> list:
        return [t for t in (self.alternative_type_1, self.alternative_type_2) if t]


CONTENT_TYPES = ("personality-main", "personality-sub", "general")
CONTENT_CATEGORIES = ("Introduction", "personality color", "personality types")

_TAG_RE = re.compile(r"<[^>]*>")


class Content(Base):
    __tablename__ = "contents"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    slug = Column(String(200), unique=True, nullable=False)
    content_type = Column(String(32), nullable=False)
    category = Column(String(64), nullable=False)
    subtitle = Column(String(200), nullable=True)
    overview = Column(String(2000), nullable=True)
    body = Column(Text, nullable=False)
    excerpt = Column(String(300), nullable=True)
    personality_id = Column(String(4), nullable=True)
    personality_name = Column(String(100), nullable=True)
    personality_group = Column(String(4), nullable=True)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("contents.id", ondelete="CASCADE"), nullable=True)
    order = Column(Integer, nullable=True)
    is_locked = Column(Boolean, nullable=False, default=False)
    main_image = Column(String(255), nullable=True)
    author = Column(String(100), nullable=False)
    published = Column(Boolean, nullable=False, default=False)
    minimum_read_time = Column(Integer, nullable=True) # seconds
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_contents_personality_id_content_type", "personality_id", "content_type"),
        Index("ix_contents_category_published", "category", "published"),
    )

    @property
    def word_count(self) -> int:
        text = _TAG_RE.sub("", self.body or "")
        return len([word for word in text.split() if word])


class ContentRead(Base):
    __tablename__ = "content_reads"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content_id = Column(Uuid(as_uuid=True), ForeignKey("contents.id", ondelete="CASCADE"), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    __table_args__ = (UniqueConstraint("user_id", "content_id", name="uq_content_reads_user_content"),)
