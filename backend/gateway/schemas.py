"""Result models for AI gateway calls and the response schemas declared to Gemini.

The schema dicts use Gemini's OpenAPI subset (upper-case ``type`` names). Each
result model mirrors one schema and is validated before anything uses it.
"""
from typing import Optional

from pydantic import BaseModel, field_validator

from backend.catalog.models import SymbolDefinition

_STRING = {"type": "STRING"}
_STRING_LIST = {"type": "ARRAY", "items": _STRING}

SYMBOL_LIST_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "symbol": _STRING,
            "meaning": _STRING,
        },
        "required": ["symbol", "meaning"],
    },
}

BATCH_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": _STRING,
            "problem": _STRING,
            "latex": _STRING,
            "explanation": _STRING_LIST,
            "answer": _STRING,
            "category": _STRING,
            "division": _STRING,
            "symbols": SYMBOL_LIST_SCHEMA,
        },
        "required": ["title", "problem", "explanation", "answer", "category", "division"],
    },
}

SYMBOLS_SCHEMA = {
    "type": "OBJECT",
    "properties": {"symbols": SYMBOL_LIST_SCHEMA},
    "required": ["symbols"],
}

DISCOVERY_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "problem": _STRING,
        "latex": _STRING,
        "explanation": _STRING_LIST,
        "answer": _STRING,
        "source_year": _STRING,
        "source_contest": _STRING,
        "symbols": SYMBOL_LIST_SCHEMA,
    },
    "required": ["problem", "explanation", "answer"],
}

SOLUTION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "problem": _STRING,
        "latex": _STRING,
        "explanation": _STRING_LIST,
        "answer": _STRING,
        "category": _STRING,
        "symbols": SYMBOL_LIST_SCHEMA,
    },
    "required": ["problem", "explanation", "answer", "category"],
}


def _as_text(value):
    # Models sometimes answer 84 instead of "84"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class WorkedProblem(BaseModel):
    """Fields shared by every AI result that carries a worked problem."""
    problem: str
    latex: Optional[str] = None
    explanation: list[str]
    answer: str
    symbols: Optional[list[SymbolDefinition]] = None

    @field_validator("answer", mode="before")
    @classmethod
    def _answer_as_text(cls, value):
        return _as_text(value)

    @field_validator("latex")
    @classmethod
    def _blank_latex_is_none(cls, value):
        if value is not None and not value.strip():
            return None
        return value


class GeneratedProblem(WorkedProblem):
    title: str
    category: str
    division: str


class SymbolLookup(BaseModel):
    symbols: list[SymbolDefinition]


class DiscoveredProblem(WorkedProblem):
    source_year: Optional[str] = None
    source_contest: Optional[str] = None

    @field_validator("source_year", "source_contest", mode="before")
    @classmethod
    def _source_as_text(cls, value):
        return _as_text(value)


class WebSource(BaseModel):
    """A grounding citation returned by search-augmented generation."""
    title: str
    uri: str


class DiscoveryResult(BaseModel):
    data: DiscoveredProblem
    sources: list[WebSource] = []


class SolvedProblem(WorkedProblem):
    category: str
