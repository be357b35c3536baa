"""Data models for MOEMS practice problems."""
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

CUSTOM_YEAR = "Custom"
AI_GENERATED_YEAR = "AI-Generated"


class Category(str, Enum):
    FRACTIONS = "Fractions & Ratios"
    NUMBER_THEORY = "Number Theory"
    LOGIC = "Logic & Sequences"
    GEOMETRY = "Geometry"
    ALGEBRA = "Algebra"
    COUNTING = "Counting & Probability"


class Division(str, Enum):
    E = "Division E"
    M = "Division M"


class AnswerFeedback(str, Enum):
    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class SymbolDefinition(BaseModel):
    """One entry of a symbol glossary."""
    symbol: str
    meaning: str


class Problem(BaseModel):
    """Model for a practice problem, from the catalog or the custom bank."""
    model_config = ConfigDict(frozen=True)

    id: str  # e.g., "1819-M1A" or "ai-batch-1700000000000-0"
    title: str
    category: Category
    division: Division
    year: Optional[str] = None  # contest season, or "Custom" / "AI-Generated"
    contest: Optional[int] = None
    description: str
    latex: Optional[str] = None
    hint: Optional[str] = None
    solution: list[str]
    answer: str
    symbols: Optional[list[SymbolDefinition]] = None

    @field_validator("answer", mode="before")
    @classmethod
    def _answer_as_text(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


def is_custom(problem: Problem) -> bool:
    """Saved or AI-made problems, badged separately from official ones."""
    return problem.year in (CUSTOM_YEAR, AI_GENERATED_YEAR)


def _normalize(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


NORMALIZED_CATEGORIES = {_normalize(c.value): c for c in Category}
CATEGORY_ALIASES = {
    "fractions": Category.FRACTIONS,
    "fraction": Category.FRACTIONS,
    "ratios": Category.FRACTIONS,
    "logic": Category.LOGIC,
    "sequences": Category.LOGIC,
    "patterns": Category.LOGIC,
    "counting": Category.COUNTING,
    "probability": Category.COUNTING,
    "combinatorics": Category.COUNTING,
    "number-sense": Category.NUMBER_THEORY,
    "arithmetic": Category.ALGEBRA,
}


def resolve_category(name: str | None, default: Category) -> Category:
    """Map a free-form category name to a Category, or return the default."""
    if not name:
        return default
    norm = _normalize(name)
    if norm in NORMALIZED_CATEGORIES:
        return NORMALIZED_CATEGORIES[norm]
    if norm in CATEGORY_ALIASES:
        return CATEGORY_ALIASES[norm]
    return default


def resolve_division(name: str | None, default: Division) -> Division:
    """Accept "M", "Div M", "Division M" and the like."""
    if not name:
        return default
    norm = _normalize(name)
    for prefix in ("division-", "div-"):
        if norm.startswith(prefix):
            norm = norm[len(prefix):]
    if norm == "e":
        return Division.E
    if norm == "m":
        return Division.M
    return default


def check_answer(user_answer: str, answer: str) -> bool:
    """Trimmed, case-insensitive string comparison; no numeric normalization."""
    return user_answer.strip().casefold() == answer.strip().casefold()
