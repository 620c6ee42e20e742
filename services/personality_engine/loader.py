import yaml
from typing import Dict, Any

from src.db.validation import QuestionValidationError, validate_question_options
from services.personality_engine.models import AssessmentSpec

DEFAULT_ASSESSMENT_PATH = "assets/mbti_assessment.yml"


class SpecValidationError(ValueError):
    """Custom exception for assessment file errors not covered by Pydantic."""
    pass


def load_assessment_spec_data(data: Dict[str, Any]) -> AssessmentSpec:
    """
    Validates the raw dictionary data against the AssessmentSpec model
    and performs additional custom validations.
    """
    # Schema problems surface as pydantic.ValidationError.
    spec = AssessmentSpec.model_validate(data)

    question_ids = set()
    for question in spec.questions:
        if question.id in question_ids:
            raise SpecValidationError(f"Duplicate question ID found: {question.id}")
        question_ids.add(question.id)

        try:
            validate_question_options(question.group, [o.model_dump() for o in question.options])
        except QuestionValidationError as e:
            raise SpecValidationError(f"Question '{question.id}': {e}")

    return spec


def load_assessment_spec_from_file(file_path: str = DEFAULT_ASSESSMENT_PATH) -> AssessmentSpec:
    """
    Loads an assessment definition from a YAML file, validates it,
    and returns an AssessmentSpec object.
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise SpecValidationError(f"File not found: {file_path}")
    except yaml.YAMLError as e:
        raise SpecValidationError(f"Error parsing YAML file {file_path}: {e}")

    if data is None:
        raise SpecValidationError(f"YAML file is empty or invalid: {file_path}")

    return load_assessment_spec_data(data)
