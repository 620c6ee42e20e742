"""
Dimension definitions for the MBTI-style assessment.
"""
from typing import Dict, List, NamedTuple


class Dimension(NamedTuple):
    code: str
    first_letter: str
    second_letter: str
    first_trait: str
    second_trait: str

    @property
    def letters(self) -> tuple:
        return (self.first_letter, self.second_letter)

    def complement(self, letter: str) -> str:
        """Returns the other letter of this dimension's pair."""
        if letter == self.first_letter:
            return self.second_letter
        if letter == self.second_letter:
            return self.first_letter
        raise ValueError(f"Letter '{letter}' does not belong to dimension {self.code}")


# Fixed order: type codes are built EI, SN, TF, JP.
DIMENSIONS: List[Dimension] = [
    Dimension("EI", "E", "I", "extrovert", "introvert"),
    Dimension("SN", "S", "N", "sensory", "intuitive"),
    Dimension("TF", "T", "F", "thinking", "feeling"),
    Dimension("JP", "J", "P", "judging", "perceiving"),
]

DIMENSION_CODES: List[str] = [d.code for d in DIMENSIONS]
DIMENSIONS_BY_CODE: Dict[str, Dimension] = {d.code: d for d in DIMENSIONS}

TRAIT_LETTERS: List[str] = [letter for d in DIMENSIONS for letter in d.letters]

# letter -> dimension code, e.g. "N" -> "SN"
LETTER_TO_DIMENSION: Dict[str, str] = {
    letter: d.code for d in DIMENSIONS for letter in d.letters
}

# letter -> score field name, e.g. "N" -> "intuitive"
LETTER_TO_TRAIT: Dict[str, str] = {}
for _d in DIMENSIONS:
    LETTER_TO_TRAIT[_d.first_letter] = _d.first_trait
    LETTER_TO_TRAIT[_d.second_letter] = _d.second_trait

TRAIT_NAMES: List[str] = [LETTER_TO_TRAIT[letter] for letter in TRAIT_LETTERS]

TRAIT_PAIRS: List[tuple] = [(d.first_trait, d.second_trait) for d in DIMENSIONS]
