"""Gemini calls that generate, explain, discover and solve MOEMS problems."""
import json
import logging
from typing import Any, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from backend.catalog.models import Category, SymbolDefinition
from backend.config import MODEL, SOLVER_MODEL, Settings

from .schemas import (
    BATCH_SCHEMA,
    DISCOVERY_SCHEMA,
    SOLUTION_SCHEMA,
    SYMBOLS_SCHEMA,
    DiscoveredProblem,
    DiscoveryResult,
    GeneratedProblem,
    SolvedProblem,
    SymbolLookup,
    WebSource,
)

logger = logging.getLogger(__name__)

BATCH_SIZE = 5
DEFAULT_SOURCE_TITLE = "Official MOEMS Archive"


class GatewayError(Exception):
    """Any failed AI call. Callers only need to catch this."""


class GatewayRequestError(GatewayError):
    """Network failure, timeout or non-2xx status."""


class GatewayResponseError(GatewayError):
    """The model replied, but without usable JSON text."""


class GatewaySchemaError(GatewayError):
    """The reply parsed as JSON but does not match the declared shape."""


BATCH_PROMPT = """Act as a MOEMS (Math Olympiads for Elementary and Middle Schools) contest creator.
Generate a "Training Pack" of exactly {count} challenging but fair problems for a 6th grader (Division E or M).
{focus}

For each problem:
1. Focus on clever logic rather than heavy calculation.
2. Identify mathematical symbols and provide clear definitions.
3. Ensure answers are short (usually integers or simple fractions).

Return the response in JSON as an array of {count} objects."""

MIXED_FOCUS = "Provide a diverse mix of categories: Geometry, Number Theory, Logic, Algebra, and Fractions."

SYMBOLS_PROMPT = """Examine the following Math Olympiad problem and extract every mathematical symbol, operation, or complex notation.
Provide a clear, simple definition for each one suitable for a 6th grader.
Problem: "{problem}\""""

DISCOVERY_PROMPT = """You are an expert researcher of Math Olympiad past papers. Find an EXACT problem from the MOEMS (Math Olympiads for Elementary and Middle Schools) Division M or E official papers for the query: "{query}".
Do not invent a problem. Look for official PDFs or contest archives.
Identify any symbols used and define them.

Format the response in JSON with:
- "problem": the exact question text
- "latex": any formulas in LaTeX
- "explanation": step by step guide
- "answer": the final result
- "source_year": the specific year
- "source_contest": the contest number
- "symbols": [{{"symbol": "...", "meaning": "..."}}]"""

SOLVE_PROMPT = """You are a world-class math tutor for 6th graders. Solve this MOEMS problem: "{problem}".
Provide a clear, encouraging, step-by-step breakdown. Also define any symbols used."""


def make_client(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Build the HTTP client used for every gateway call."""
    headers = {}
    if settings.api_key:
        headers["x-goog-api-key"] = settings.api_key
    else:
        logger.warning("No Gemini API key configured; AI features will fail")
    return httpx.AsyncClient(
        base_url=settings.base_url,
        headers=headers,
        timeout=settings.timeout,
        transport=transport,
    )


def _strip_code_fences(text: str) -> str:
    # Handle models that wrap JSON in markdown code blocks
    if "```json" in text:
        return text.split("```json")[1].split("```")[0].strip()
    if "```" in text:
        return text.split("```")[1].split("```")[0].strip()
    return text


async def _generate_content(
    client: httpx.AsyncClient,
    prompt: str,
    schema: dict,
    *,
    model: str,
    search: bool = False,
) -> tuple[Any, dict]:
    """Send one generateContent request. Returns the parsed JSON reply and the raw candidate."""
    payload: dict[str, Any] = {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": schema,
        },
    }
    if search:
        payload["tools"] = [{"googleSearch": {}}]

    try:
        response = await client.post(f"models/{model}:generateContent", json=payload)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise GatewayRequestError(f"Gemini request failed: {e}") from e

    try:
        result = response.json()
    except ValueError as e:
        raise GatewayResponseError("Gemini returned a non-JSON body") from e

    candidates = result.get("candidates") if isinstance(result, dict) else None
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        raise GatewayResponseError("Gemini returned no candidates")
    candidate = candidates[0]

    content = candidate.get("content")
    parts = (content.get("parts") if isinstance(content, dict) else None) or []
    if not isinstance(parts, list):
        parts = []
    text_parts = [p["text"] for p in parts if isinstance(p, dict) and p.get("text")]
    if not text_parts:
        raise GatewayResponseError(
            f"Gemini returned no text (finish reason: {candidate.get('finishReason')})"
        )

    text = _strip_code_fences("".join(text_parts).strip())
    try:
        return json.loads(text), candidate
    except json.JSONDecodeError as e:
        raise GatewayResponseError(f"Gemini returned invalid JSON: {e}") from e


def _validate(shape, data: Any):
    try:
        if isinstance(shape, type) and issubclass(shape, BaseModel):
            return shape.model_validate(data)
        return shape.validate_python(data)
    except ValidationError as e:
        raise GatewaySchemaError(f"Gemini reply does not match schema: {e}") from e


def harvest_sources(candidate: dict) -> list[WebSource]:
    """Collect web grounding citations, dropping ones without a URI and duplicates."""
    metadata = candidate.get("groundingMetadata")
    chunks = metadata.get("groundingChunks") if isinstance(metadata, dict) else None
    if not isinstance(chunks, list):
        return []
    sources: list[WebSource] = []
    seen: set[str] = set()
    for chunk in chunks:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        uri = web.get("uri")
        if not uri or uri in seen:
            continue
        seen.add(uri)
        sources.append(WebSource(title=web.get("title") or DEFAULT_SOURCE_TITLE, uri=uri))
    return sources


_BATCH = TypeAdapter(list[GeneratedProblem])


async def generate_batch(
    client: httpx.AsyncClient,
    topic: Optional[Category] = None,
    *,
    model: str = MODEL,
) -> list[GeneratedProblem]:
    """Ask for a training pack of BATCH_SIZE new problems, optionally on one topic."""
    focus = f"The primary focus must be: {topic.value}." if topic else MIXED_FOCUS
    prompt = BATCH_PROMPT.format(count=BATCH_SIZE, focus=focus)

    data, _ = await _generate_content(client, prompt, BATCH_SCHEMA, model=model)
    items = _validate(_BATCH, data)
    if not items:
        raise GatewaySchemaError("Gemini returned an empty training pack")
    if len(items) > BATCH_SIZE:
        logger.warning("Gemini returned %d problems; keeping %d", len(items), BATCH_SIZE)
        items = items[:BATCH_SIZE]
    return items


async def fetch_symbol_definitions(
    client: httpx.AsyncClient,
    problem_text: str,
    *,
    model: str = MODEL,
) -> list[SymbolDefinition]:
    """Define every symbol and notation found in a problem statement."""
    prompt = SYMBOLS_PROMPT.format(problem=problem_text)
    data, _ = await _generate_content(client, prompt, SYMBOLS_SCHEMA, model=model)
    return _validate(SymbolLookup, data).symbols


async def discover_from_web(
    client: httpx.AsyncClient,
    query: str,
    *,
    model: str = MODEL,
) -> DiscoveryResult:
    """Find a real past contest problem using search-grounded generation."""
    prompt = DISCOVERY_PROMPT.format(query=query)
    data, candidate = await _generate_content(
        client, prompt, DISCOVERY_SCHEMA, model=model, search=True
    )
    problem = _validate(DiscoveredProblem, data)
    return DiscoveryResult(data=problem, sources=harvest_sources(candidate))


async def solve_custom(
    client: httpx.AsyncClient,
    problem_text: str,
    *,
    model: str = SOLVER_MODEL,
) -> SolvedProblem:
    """Step-by-step solution and symbol glossary for free-text input. Never persisted."""
    prompt = SOLVE_PROMPT.format(problem=problem_text)
    data, _ = await _generate_content(client, prompt, SOLUTION_SCHEMA, model=model)
    return _validate(SolvedProblem, data)
