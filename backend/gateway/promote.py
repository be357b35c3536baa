"""Turning transient AI results into bank problems."""
import re
import secrets
import time
from typing import Optional

from backend.catalog.models import (
    CUSTOM_YEAR,
    Category,
    Division,
    Problem,
    resolve_category,
    resolve_division,
)

from .schemas import DiscoveryResult, GeneratedProblem

DISCOVERED_TITLE = "Discovered Problem"


def _epoch_ms(timestamp: Optional[float]) -> int:
    return int((time.time() if timestamp is None else timestamp) * 1000)


def promote_generated(
    item: GeneratedProblem,
    index: int,
    *,
    timestamp: Optional[float] = None,
    default_category: Category = Category.LOGIC,
    default_division: Division = Division.M,
) -> Problem:
    """Bank entry for one problem of a generated pack; index keeps ids distinct within a pack."""
    return Problem(
        id=f"ai-batch-{_epoch_ms(timestamp)}-{index}",
        title=item.title,
        category=resolve_category(item.category, default_category),
        division=resolve_division(item.division, default_division),
        year=CUSTOM_YEAR,
        description=item.problem,
        latex=item.latex,
        solution=item.explanation,
        answer=item.answer,
        symbols=item.symbols,
    )


def _contest_number(source_contest: Optional[str]) -> Optional[int]:
    if not source_contest:
        return None
    match = re.search(r"\d+", source_contest)
    return int(match.group()) if match else None


def promote_discovered(
    result: DiscoveryResult,
    *,
    timestamp: Optional[float] = None,
    default_category: Category = Category.LOGIC,
    default_division: Division = Division.M,
) -> Problem:
    """Bank entry for a discovered problem, which never carries its own category or division.

    Ids look like `discovered-{epoch_ms}-{6 hex digits}`.
    """
    data = result.data
    if data.source_year:
        title = data.source_year
        if data.source_contest:
            title += f" Contest {data.source_contest}"
    else:
        title = DISCOVERED_TITLE
    return Problem(
        id=f"discovered-{_epoch_ms(timestamp)}-{secrets.token_hex(3)}",
        title=title,
        category=default_category,
        division=default_division,
        year=CUSTOM_YEAR,
        contest=_contest_number(data.source_contest),
        description=data.problem,
        latex=data.latex,
        solution=data.explanation,
        answer=data.answer,
        symbols=data.symbols,
    )
