"""Problem catalog: models, the static problem list and filtering."""
from .filters import MATCH_ALL, filter_problems, merge_problems
from .models import (
    AI_GENERATED_YEAR,
    CUSTOM_YEAR,
    AnswerFeedback,
    Category,
    Division,
    Problem,
    SymbolDefinition,
    check_answer,
    is_custom,
    resolve_category,
    resolve_division,
)
from .problems import CATALOG, catalog_years

__all__ = [
    "AI_GENERATED_YEAR",
    "CATALOG",
    "CUSTOM_YEAR",
    "MATCH_ALL",
    "AnswerFeedback",
    "Category",
    "Division",
    "Problem",
    "SymbolDefinition",
    "catalog_years",
    "check_answer",
    "filter_problems",
    "is_custom",
    "merge_problems",
    "resolve_category",
    "resolve_division",
]
