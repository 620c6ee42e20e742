import copy
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from services.personality_engine.definitions import DIMENSION_CODES
from services.personality_engine.loader import (
    SpecValidationError,
    load_assessment_spec_data,
    load_assessment_spec_from_file,
)
from services.personality_engine.scoring import compute_result, count_questions_by_dimension

# Minimal valid structure for testing
MINIMAL_VALID_SPEC = {
    "title": "Mini",
    "description": "One question per dimension",
    "published": True,
    "questions": [
        {
            "id": "q1",
            "group": "EI",
            "text": "Parties?",
            "options": [
                {"text": "Love them", "value": "E"},
                {"text": "Avoid them", "value": "I"},
            ],
        },
        {
            "id": "q2",
            "group": "SN",
            "text": "Details?",
            "options": [
                {"text": "Facts first", "value": "S"},
                {"text": "Big picture", "value": "N"},
            ],
        },
        {
            "id": "q3",
            "group": "TF",
            "text": "Decisions?",
            "options": [
                {"text": "Logic", "value": "T"},
                {"text": "Values", "value": "F"},
            ],
        },
        {
            "id": "q4",
            "group": "JP",
            "text": "Plans?",
            "options": [
                {"text": "Fixed", "value": "J"},
                {"text": "Open", "value": "P"},
            ],
        },
    ],
}


def test_load_minimal_valid_spec():
    spec = load_assessment_spec_data(copy.deepcopy(MINIMAL_VALID_SPEC))
    assert spec.title == "Mini"
    assert spec.instructions is None
    assert [q.id for q in spec.questions] == ["q1", "q2", "q3", "q4"]


def test_duplicate_question_ids_rejected():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["questions"][1]["id"] = "q1"
    with pytest.raises(SpecValidationError, match="Duplicate question ID"):
        load_assessment_spec_data(data)


def test_option_values_must_match_group():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["questions"][0]["options"][1]["value"] = "N"
    with pytest.raises(SpecValidationError, match="must have option values E and I"):
        load_assessment_spec_data(data)


def test_unknown_option_letter_is_schema_error():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["questions"][0]["options"][0]["value"] = "X"
    with pytest.raises(ValidationError):
        load_assessment_spec_data(data)


def test_every_dimension_needs_a_question():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["questions"] = [q for q in data["questions"] if q["group"] == "EI"]
    with pytest.raises(ValidationError, match="missing SN, TF, JP"):
        load_assessment_spec_data(data)


def test_three_options_rejected():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["questions"][0]["options"].append({"text": "Depends", "value": "E"})
    with pytest.raises(ValidationError):
        load_assessment_spec_data(data)


def test_long_title_rejected():
    data = copy.deepcopy(MINIMAL_VALID_SPEC)
    data["title"] = "x" * 101
    with pytest.raises(ValidationError):
        load_assessment_spec_data(data)


def test_missing_file(tmp_path: Path):
    with pytest.raises(SpecValidationError, match="File not found"):
        load_assessment_spec_from_file(str(tmp_path / "nope.yml"))


def test_empty_file(tmp_path: Path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    with pytest.raises(SpecValidationError, match="empty"):
        load_assessment_spec_from_file(str(path))


def test_invalid_yaml(tmp_path: Path):
    path = tmp_path / "broken.yml"
    path.write_text("title: [unclosed", encoding="utf-8")
    with pytest.raises(SpecValidationError, match="Error parsing YAML"):
        load_assessment_spec_from_file(str(path))


def test_round_trip_through_file(tmp_path: Path):
    path = tmp_path / "mini.yml"
    path.write_text(yaml.safe_dump(MINIMAL_VALID_SPEC), encoding="utf-8")
    spec = load_assessment_spec_from_file(str(path))
    assert len(spec.questions) == 4


# --- Bundled assessment ---

def test_bundled_assessment_is_balanced(assessment_spec):
    counts = count_questions_by_dimension(q.group for q in assessment_spec.questions)
    assert set(counts) == set(DIMENSION_CODES)
    assert all(n == 8 for n in counts.values())
    assert assessment_spec.published is True


def test_bundled_assessment_first_options_score_estj(assessment_spec, build_answers):
    counts = count_questions_by_dimension(q.group for q in assessment_spec.questions)
    result = compute_result(build_answers(lambda i, q: 0), counts)

    assert result.personality_type == "ESTJ"
    assert result.scores.extrovert == 100
    assert result.scores.introvert == 0
    assert result.scores.judging == 100
    assert result.alternative_types == []


def test_bundled_assessment_second_options_score_infp(assessment_spec, build_answers):
    counts = count_questions_by_dimension(q.group for q in assessment_spec.questions)
    result = compute_result(build_answers(lambda i, q: 1), counts)
    assert result.personality_type == "INFP"
