"""
Validation run before entities are constructed.

Each function raises a typed EntityValidationError subclass describing the
first problem found; nothing here touches the database.
"""
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from services.personality_engine.definitions import DIMENSIONS_BY_CODE, TRAIT_NAMES, TRAIT_PAIRS
from src.db.models import CONTENT_CATEGORIES, CONTENT_TYPES

TYPE_CODE_RE = re.compile(r"^[A-Z]{4}$")
EMAIL_RE = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
SLUG_RE = re.compile(r"^[a-z0-9-/]+$")

MIN_PASSWORD_LENGTH = 6
MAX_NAME_LENGTH = 50


class EntityValidationError(ValueError):
    """Base class for entity validation failures."""
    pass


class ResultValidationError(EntityValidationError):
    pass


class QuestionValidationError(EntityValidationError):
    pass


class ContentValidationError(EntityValidationError):
    pass


class UserValidationError(EntityValidationError):
    pass


def validate_result_fields(
    *,
    answers: Sequence[str],
    scores: Mapping[str, int],
    personality_type: str,
    user_id: Any = None,
    guest_id: Optional[str] = None,
    alternative_types: Sequence[str] = (),
    time_taken: Optional[int] = None,
) -> None:
    """Checks a result before it is stored. Complementary scores must sum to exactly 100."""
    if (user_id is None) == (guest_id is None):
        raise ResultValidationError("Result must have either a user_id or a guest_id, not both.")
    if guest_id is not None and not guest_id.strip():
        raise ResultValidationError("guest_id cannot be blank.")

    if not answers:
        raise ResultValidationError("At least one answer is required.")

    missing = [name for name in TRAIT_NAMES if name not in scores]
    if missing:
        raise ResultValidationError(f"Missing scores: {', '.join(missing)}")
    for name in TRAIT_NAMES:
        value = scores[name]
        if not 0 <= value <= 100:
            raise ResultValidationError(f"Score '{name}' must be between 0 and 100, got {value}.")
    for first, second in TRAIT_PAIRS:
        if scores[first] + scores[second] != 100:
            raise ResultValidationError(
                f"Complementary scores must add up to 100: {first}={scores[first]}, {second}={scores[second]}."
            )

    if not TYPE_CODE_RE.match(personality_type or ""):
        raise ResultValidationError("Personality type must be 4 uppercase letters.")
    if len(alternative_types) > 2:
        raise ResultValidationError("At most two alternative types are allowed.")
    for alt in alternative_types:
        if not TYPE_CODE_RE.match(alt or ""):
            raise ResultValidationError(f"Alternative type '{alt}' must be 4 uppercase letters.")

    if time_taken is not None and time_taken < 0:
        raise ResultValidationError("time_taken cannot be negative.")


def validate_question_options(group: str, options: List[Dict[str, Any]]) -> None:
    """Each question has exactly two options whose values are the two letters of its group."""
    dimension = DIMENSIONS_BY_CODE.get(group)
    if dimension is None:
        raise QuestionValidationError(f"'{group}' is not a valid question group.")
    if len(options) != 2:
        raise QuestionValidationError("Each question must have exactly 2 options.")

    expected = sorted(dimension.letters)
    actual = sorted(str(option.get("value")) for option in options)
    if actual != expected:
        raise QuestionValidationError(
            f"Question type \"{group}\" must have option values {' and '.join(expected)}, got {' and '.join(actual)}"
        )


def validate_content_fields(
    *,
    slug: str,
    content_type: str,
    category: str,
    personality_id: Optional[str] = None,
    parent_id: Any = None,
    order: Optional[int] = None,
) -> None:
    if not SLUG_RE.match(slug or ""):
        raise ContentValidationError("Slug can only contain lowercase letters, numbers, hyphens, and slashes.")
    if content_type not in CONTENT_TYPES:
        raise ContentValidationError(f"'{content_type}' is not a valid content type.")
    if category not in CONTENT_CATEGORIES:
        raise ContentValidationError(f"'{category}' is not a valid category.")
    if content_type == "personality-sub":
        if parent_id is None:
            raise ContentValidationError("Sub-articles must have a parent_id.")
        if order is None:
            raise ContentValidationError("Sub-articles must have an order.")
    if order is not None and order < 0:
        raise ContentValidationError("order cannot be negative.")
    if content_type != "general" and not personality_id:
        raise ContentValidationError("Personality content must have a personality_id.")


def validate_user_fields(*, email: str, name: str, password: str) -> None:
    if not EMAIL_RE.match(email or ""):
        raise UserValidationError("Please provide a valid email.")
    if not name or not name.strip():
        raise UserValidationError("Name is required.")
    if len(name.strip()) > MAX_NAME_LENGTH:
        raise UserValidationError(f"Name cannot exceed {MAX_NAME_LENGTH} characters.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise UserValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
