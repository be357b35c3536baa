import asyncio
import json

import httpx
import pytest

from backend.catalog import CUSTOM_YEAR, Category, Division
from backend.gateway import (
    BATCH_SIZE,
    DiscoveryResult,
    GatewayRequestError,
    GatewayResponseError,
    GatewaySchemaError,
    discover_from_web,
    fetch_symbol_definitions,
    generate_batch,
    promote_discovered,
    promote_generated,
    solve_custom,
)


def _gemini_reply(payload, grounding=None, text=None):
    candidate = {"content": {"parts": [{"text": text if text is not None else json.dumps(payload)}]}}
    if grounding is not None:
        candidate["groundingMetadata"] = {"groundingChunks": grounding}
    return {"candidates": [candidate]}


def _run(operation, argument, reply=None, status=200, requests=None):
    async def handler(request):
        if requests is not None:
            requests.append(request)
        return httpx.Response(status, json=reply or {})

    transport = httpx.MockTransport(handler)

    async def run():
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            return await operation(client, argument)

    return asyncio.run(run())


def _batch_item(i: int, **overrides) -> dict:
    item = {
        "title": f"Pack Problem {i}",
        "problem": f"What is {i} + {i}?",
        "explanation": [f"{i} + {i} = {2 * i}."],
        "answer": 2 * i,
        "category": "Number Theory",
        "division": "Division E",
    }
    item.update(overrides)
    return item


def test_generate_batch_declares_schema_without_search():
    requests = []
    items = [_batch_item(i) for i in range(BATCH_SIZE)]
    result = _run(generate_batch, None, _gemini_reply(items), requests=requests)

    assert len(result) == 5
    assert result[3].answer == "6"

    request = requests[0]
    assert request.url.path == "/models/gemini-3-flash-preview:generateContent"
    body = json.loads(request.content)
    assert "tools" not in body
    config = body["generationConfig"]
    assert config["responseMimeType"] == "application/json"
    assert config["responseSchema"]["type"] == "ARRAY"
    assert "division" in config["responseSchema"]["items"]["required"]
    assert "diverse mix" in body["contents"][0]["parts"][0]["text"]


def test_generate_batch_with_topic_focuses_prompt():
    requests = []
    items = [_batch_item(i) for i in range(BATCH_SIZE)]
    _run(generate_batch, Category.GEOMETRY, _gemini_reply(items), requests=requests)
    prompt = json.loads(requests[0].content)["contents"][0]["parts"][0]["text"]
    assert "The primary focus must be: Geometry." in prompt


def test_generate_batch_keeps_at_most_five():
    items = [_batch_item(i) for i in range(7)]
    assert len(_run(generate_batch, None, _gemini_reply(items))) == BATCH_SIZE


def test_generate_batch_rejects_empty_pack():
    with pytest.raises(GatewaySchemaError):
        _run(generate_batch, None, _gemini_reply([]))


def test_missing_required_field_is_a_schema_error():
    items = [_batch_item(0)]
    del items[0]["explanation"]
    with pytest.raises(GatewaySchemaError):
        _run(generate_batch, None, _gemini_reply(items))


def test_fenced_json_is_accepted():
    text = "```json\n" + json.dumps({"symbols": [{"symbol": "^", "meaning": "power"}]}) + "\n```"
    symbols = _run(fetch_symbol_definitions, "10^20 - 20", _gemini_reply(None, text=text))
    assert [(s.symbol, s.meaning) for s in symbols] == [("^", "power")]


def test_invalid_json_text_is_a_response_error():
    with pytest.raises(GatewayResponseError):
        _run(fetch_symbol_definitions, "x", _gemini_reply(None, text='{"symbols": ['))


def test_no_candidates_is_a_response_error():
    with pytest.raises(GatewayResponseError):
        _run(fetch_symbol_definitions, "x", {"candidates": []})


def test_http_failure_is_a_request_error():
    with pytest.raises(GatewayRequestError):
        _run(solve_custom, "1 + 1", {"error": {"code": 500}}, status=500)


def test_discover_enables_search_and_harvests_sources():
    requests = []
    payload = {
        "problem": "What is the smallest prime greater than 20?",
        "explanation": ["21 = 3*7, 22 = 2*11, 23 is prime."],
        "answer": "23",
        "source_year": "2016-2017",
        "source_contest": "3",
    }
    grounding = [
        {"web": {"title": "MOEMS 2016 Contest 3", "uri": "https://example.org/c3.pdf"}},
        {"web": {"uri": "https://example.org/archive"}},
        {"web": {"title": "No link"}},
        {"web": {"title": "Duplicate", "uri": "https://example.org/c3.pdf"}},
        {"retrievedContext": {}},
    ]
    result = _run(discover_from_web, "2016 prime", _gemini_reply(payload, grounding), requests=requests)

    body = json.loads(requests[0].content)
    assert body["tools"] == [{"googleSearch": {}}]
    assert result.data.answer == "23"
    assert [(s.title, s.uri) for s in result.sources] == [
        ("MOEMS 2016 Contest 3", "https://example.org/c3.pdf"),
        ("Official MOEMS Archive", "https://example.org/archive"),
    ]


def test_discover_without_grounding_has_no_sources():
    payload = {"problem": "P", "explanation": ["S"], "answer": "1"}
    result = _run(discover_from_web, "anything", _gemini_reply(payload))
    assert result.sources == []
    assert result.data.source_year is None


def test_solve_custom_uses_solver_model():
    requests = []
    payload = {
        "problem": "Sum of the first 50 odd numbers",
        "latex": "",
        "explanation": ["The sum of the first n odd numbers is n^2.", "50^2 = 2500."],
        "answer": 2500,
        "category": "Number Theory",
        "symbols": [{"symbol": "n^2", "meaning": "n times n"}],
    }
    result = _run(solve_custom, "Sum of the first 50 odd numbers?", _gemini_reply(payload), requests=requests)

    assert "gemini-3-pro-preview" in requests[0].url.path
    assert result.answer == "2500"
    assert result.latex is None
    assert result.symbols[0].symbol == "n^2"


def test_promote_generated_applies_custom_year_and_ids():
    items = _run(generate_batch, None, _gemini_reply([_batch_item(i) for i in range(5)]))
    problems = [promote_generated(item, i, timestamp=1700000000.5) for i, item in enumerate(items)]

    assert [p.id for p in problems] == [f"ai-batch-1700000000500-{i}" for i in range(5)]
    assert all(p.year == CUSTOM_YEAR for p in problems)
    assert problems[0].category == Category.NUMBER_THEORY
    assert problems[0].division == Division.E


def test_promote_generated_falls_back_to_defaults():
    items = _run(
        generate_batch,
        None,
        _gemini_reply([_batch_item(0, category="Cryptography", division="Senior")]),
    )
    problem = promote_generated(
        items[0], 0, default_category=Category.ALGEBRA, default_division=Division.E
    )
    assert problem.category == Category.ALGEBRA
    assert problem.division == Division.E


def test_promote_discovered_titles_and_defaults():
    result = DiscoveryResult.model_validate(
        {
            "data": {
                "problem": "P",
                "explanation": ["S"],
                "answer": "7",
                "source_year": "2017-2018",
                "source_contest": "4",
            }
        }
    )
    problem = promote_discovered(result, timestamp=2.0)
    assert problem.id.startswith("discovered-2000-")
    assert promote_discovered(result, timestamp=2.0).id != problem.id
    assert problem.title == "2017-2018 Contest 4"
    assert problem.contest == 4
    assert problem.category == Category.LOGIC
    assert problem.division == Division.M
    assert problem.year == CUSTOM_YEAR

    bare = DiscoveryResult.model_validate({"data": {"problem": "P", "explanation": [], "answer": "7"}})
    assert promote_discovered(bare).title == "Discovered Problem"


def test_non_object_content_is_a_response_error():
    reply = {"candidates": [{"content": "not an object", "finishReason": "SAFETY"}]}
    with pytest.raises(GatewayResponseError):
        _run(solve_custom, "1 + 1", reply)


def test_non_object_grounding_metadata_yields_no_sources():
    payload = {"problem": "P", "explanation": ["S"], "answer": "1"}
    reply = _gemini_reply(payload)
    reply["candidates"][0]["groundingMetadata"] = ["unexpected"]
    assert _run(discover_from_web, "anything", reply).sources == []

    reply["candidates"][0]["groundingMetadata"] = {"groundingChunks": "unexpected"}
    assert _run(discover_from_web, "anything", reply).sources == []
