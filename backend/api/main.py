"""FastAPI backend for the MOEMS study tool."""
import logging
import time
from contextlib import asynccontextmanager, contextmanager
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from backend.bank import CustomBank, LocalStorage
from backend.catalog import (
    CATALOG,
    CUSTOM_YEAR,
    AnswerFeedback,
    Category,
    Division,
    Problem,
    SymbolDefinition,
    catalog_years,
    check_answer,
    filter_problems,
    is_custom,
    merge_problems,
)
from backend.config import Settings
from backend.gateway import (
    DiscoveryResult,
    GatewayError,
    SolvedProblem,
    discover_from_web,
    fetch_symbol_definitions,
    generate_batch,
    make_client,
    promote_discovered,
    promote_generated,
    solve_custom,
)
from backend.render import (
    MathDisplay,
    MathMLCapability,
    MathRenderer,
    RenderCapability,
    RenderedMath,
)

logger = logging.getLogger(__name__)

GENERATE_FAILED = "Failed to generate batch. Please check your connection."
DISCOVER_FAILED = "AI Search failed. Please try a more specific math topic."
SOLVE_FAILED = "Something went wrong with the AI. Please try again."
SYMBOLS_FAILED = "Failed to fetch symbol definitions."


@dataclass
class PendingDiscovery:
    id: str
    result: DiscoveryResult
    saved_id: Optional[str] = None


class AppState:
    """Everything the routes share: settings, bank, renderer and the gateway client."""

    def __init__(
        self,
        settings: Settings,
        bank: CustomBank,
        renderer: MathRenderer,
        client: httpx.AsyncClient,
    ):
        self.settings = settings
        self.bank = bank
        self.renderer = renderer
        self.client = client
        # Only the latest discovery can be saved, like the single result panel
        self.discovery: Optional[PendingDiscovery] = None
        self.glossaries: dict[str, list[SymbolDefinition]] = {}
        self.displays: dict[str, MathDisplay] = {}
        self.in_flight: set[str] = set()

    def display_for(self, problem: Problem) -> MathDisplay:
        """The formula display of a problem, kept so unchanged formulas are not re-rendered."""
        display = self.displays.get(problem.id)
        if display is None:
            display = MathDisplay(self.renderer, problem.latex or "", block=True)
            self.displays[problem.id] = display
        return display

    def all_problems(self) -> list[Problem]:
        return merge_problems(self.bank.problems, CATALOG)

    def find_problem(self, problem_id: str) -> Optional[Problem]:
        for p in self.all_problems():
            if p.id == problem_id:
                return p
        return None


# Pydantic models for API
class ProblemResponse(Problem):
    is_custom: bool = False

    @classmethod
    def from_problem(cls, problem: Problem) -> "ProblemResponse":
        return cls(**problem.model_dump(), is_custom=is_custom(problem))


class CheckRequest(BaseModel):
    answer: str


class CheckResponse(BaseModel):
    feedback: AnswerFeedback
    hint: Optional[str] = None


class SymbolsResponse(BaseModel):
    symbols: list[SymbolDefinition]


class GenerateRequest(BaseModel):
    category: Optional[Category] = None  # None asks for a mixed pack


class GenerateResponse(BaseModel):
    problems: list[ProblemResponse]
    saved: int


class DiscoverRequest(BaseModel):
    query: str


class DiscoverResponse(BaseModel):
    id: str
    result: DiscoveryResult
    saved: bool = False


class SolveRequest(BaseModel):
    problem: str


class RenderRequest(BaseModel):
    latex: str
    block: bool = False


def get_state(request: Request) -> AppState:
    return request.app.state.moems


@contextmanager
def in_flight(state: AppState, affordance: str):
    """Reject a second call to the same AI action while the first is pending."""
    if affordance in state.in_flight:
        raise HTTPException(status_code=409, detail="Request already in progress")
    state.in_flight.add(affordance)
    try:
        yield
    finally:
        state.in_flight.discard(affordance)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    capability: Optional[RenderCapability] = None,
) -> FastAPI:
    """Build the app.

    Settings default to the environment and math renders to MathML unless
    another capability is given. The transport override is for tests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load the custom bank on startup."""
        resolved = settings or Settings.from_env()
        bank = CustomBank(LocalStorage(resolved.storage_path), key=resolved.storage_key)
        bank.load()
        logger.info(
            "Serving %d catalog problems and %d custom problems", len(CATALOG), len(bank)
        )
        renderer = MathRenderer(
            initial_delay=resolved.render_initial_delay,
            max_delay=resolved.render_max_delay,
            max_attempts=resolved.render_max_attempts,
        )
        renderer.provide(capability or MathMLCapability())
        async with make_client(resolved, transport=transport) as client:
            app.state.moems = AppState(resolved, bank, renderer, client)
            yield

    app = FastAPI(
        title="MOEMS Study API",
        description="Practice problems, self-checking and AI-assisted study for MOEMS",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/problems", response_model=list[ProblemResponse])
    async def get_problems(
        category: Optional[str] = Query(None, description="Category, or All"),
        division: Optional[str] = Query(None, description="Division, or All"),
        year: Optional[str] = Query(None, description="Year tag such as 2018-2019 or Custom, or All"),
        state: AppState = Depends(get_state),
    ) -> list[ProblemResponse]:
        """Custom bank plus catalog, filtered by category, division and year."""
        result = filter_problems(state.all_problems(), category, division, year)
        return [ProblemResponse.from_problem(p) for p in result]

    @app.get("/api/problems/{problem_id}", response_model=ProblemResponse)
    async def get_problem(problem_id: str, state: AppState = Depends(get_state)) -> ProblemResponse:
        problem = state.find_problem(problem_id)
        if problem is None:
            raise HTTPException(status_code=404, detail="Problem not found")
        return ProblemResponse.from_problem(problem)

    @app.post("/api/problems/{problem_id}/check", response_model=CheckResponse)
    async def check_problem_answer(
        problem_id: str, request: CheckRequest, state: AppState = Depends(get_state)
    ) -> CheckResponse:
        """Self-check an answer. Wrong answers come back with the hint, if any."""
        problem = state.find_problem(problem_id)
        if problem is None:
            raise HTTPException(status_code=404, detail="Problem not found")
        if not request.answer.strip():
            return CheckResponse(feedback=AnswerFeedback.NONE)
        if check_answer(request.answer, problem.answer):
            return CheckResponse(feedback=AnswerFeedback.CORRECT)
        return CheckResponse(feedback=AnswerFeedback.INCORRECT, hint=problem.hint)

    @app.post("/api/problems/{problem_id}/symbols", response_model=SymbolsResponse)
    async def explain_symbols(problem_id: str, state: AppState = Depends(get_state)) -> SymbolsResponse:
        """Symbol glossary for a problem, asking the model only when none is known yet."""
        problem = state.find_problem(problem_id)
        if problem is None:
            raise HTTPException(status_code=404, detail="Problem not found")
        if problem.symbols:
            return SymbolsResponse(symbols=problem.symbols)
        if problem_id in state.glossaries:
            return SymbolsResponse(symbols=state.glossaries[problem_id])

        with in_flight(state, f"symbols:{problem_id}"):
            try:
                symbols = await fetch_symbol_definitions(
                    state.client, problem.description, model=state.settings.model
                )
            except GatewayError:
                logger.exception("Failed to fetch symbols for %s", problem_id)
                raise HTTPException(status_code=502, detail=SYMBOLS_FAILED)
        state.glossaries[problem_id] = symbols
        return SymbolsResponse(symbols=symbols)

    @app.get("/api/filters")
    async def get_filters() -> dict:
        """Filter values offered to the learner."""
        return {
            "categories": [c.value for c in Category],
            "divisions": [d.value for d in Division],
            "years": [CUSTOM_YEAR, *catalog_years()],
        }

    @app.get("/api/stats")
    async def get_stats(state: AppState = Depends(get_state)) -> dict:
        return {
            "total": len(state.bank) + len(CATALOG),
            "custom": len(state.bank),
            "catalog": len(CATALOG),
        }

    @app.get("/api/bank", response_model=list[ProblemResponse])
    async def get_bank(state: AppState = Depends(get_state)) -> list[ProblemResponse]:
        return [ProblemResponse.from_problem(p) for p in state.bank.problems]

    @app.delete("/api/bank")
    async def clear_bank(
        confirm: bool = Query(False, description="Must be true to clear the bank"),
        state: AppState = Depends(get_state),
    ) -> dict:
        if not confirm:
            raise HTTPException(status_code=400, detail="Clearing the custom bank requires confirm=true")
        cleared = len(state.bank)
        state.bank.clear()
        logger.info("Cleared %d custom problems", cleared)
        return {"cleared": cleared}

    @app.post("/api/generate", response_model=GenerateResponse)
    async def generate_pack(request: GenerateRequest, state: AppState = Depends(get_state)) -> GenerateResponse:
        """Generate a training pack and add every problem to the custom bank."""
        with in_flight(state, "generate"):
            try:
                items = await generate_batch(
                    state.client, request.category, model=state.settings.model
                )
            except GatewayError:
                logger.exception("Training pack generation failed")
                raise HTTPException(status_code=502, detail=GENERATE_FAILED)

        timestamp = time.time()
        problems = [
            promote_generated(
                item,
                idx,
                timestamp=timestamp,
                default_category=state.settings.default_category,
                default_division=state.settings.default_division,
            )
            for idx, item in enumerate(items)
        ]
        saved = sum(state.bank.save(p) for p in problems)
        logger.info("Saved %d generated problems to the custom bank", saved)
        return GenerateResponse(
            problems=[ProblemResponse.from_problem(p) for p in problems], saved=saved
        )

    @app.post("/api/discover", response_model=DiscoverResponse)
    async def discover(request: DiscoverRequest, state: AppState = Depends(get_state)) -> DiscoverResponse:
        """Search past contest papers for a real problem matching the query."""
        query = request.query.strip()
        if not query:
            raise HTTPException(status_code=400, detail="Search query is required")

        with in_flight(state, "discover"):
            try:
                result = await discover_from_web(state.client, query, model=state.settings.model)
            except GatewayError:
                logger.exception("Discovery failed for %r", query)
                raise HTTPException(status_code=502, detail=DISCOVER_FAILED)

        state.discovery = PendingDiscovery(id=uuid4().hex, result=result)
        return DiscoverResponse(id=state.discovery.id, result=result)

    @app.post("/api/discoveries/{discovery_id}/save", response_model=ProblemResponse)
    async def save_discovery(discovery_id: str, state: AppState = Depends(get_state)) -> ProblemResponse:
        """Promote the latest discovery into the custom bank. Works once per discovery."""
        pending = state.discovery
        if pending is None or pending.id != discovery_id:
            raise HTTPException(status_code=404, detail="Discovery not found")
        if pending.saved_id is not None:
            raise HTTPException(status_code=409, detail="Discovery already saved")

        problem = promote_discovered(
            pending.result,
            default_category=state.settings.default_category,
            default_division=state.settings.default_division,
        )
        if not state.bank.save(problem):
            logger.warning("Discovered problem %s collides with a bank entry", problem.id)
            raise HTTPException(status_code=409, detail="A problem with this id is already in the bank")
        pending.saved_id = problem.id
        return ProblemResponse.from_problem(problem)

    @app.post("/api/solve", response_model=SolvedProblem)
    async def solve(request: SolveRequest, state: AppState = Depends(get_state)) -> SolvedProblem:
        """Step-by-step solution for any problem text. Nothing is saved."""
        text = request.problem.strip()
        if not text:
            raise HTTPException(status_code=400, detail="Problem text is required")

        with in_flight(state, "solve"):
            try:
                return await solve_custom(state.client, text, model=state.settings.solver_model)
            except GatewayError:
                logger.exception("AI solver failed")
                raise HTTPException(status_code=502, detail=SOLVE_FAILED)

    @app.post("/api/render", response_model=RenderedMath)
    async def render_math(request: RenderRequest, state: AppState = Depends(get_state)) -> RenderedMath:
        return await state.renderer.render(request.latex, request.block)

    @app.get("/api/problems/{problem_id}/math", response_model=RenderedMath)
    async def render_problem_math(problem_id: str, state: AppState = Depends(get_state)) -> RenderedMath:
        """Block rendering of a problem's formula."""
        problem = state.find_problem(problem_id)
        if problem is None:
            raise HTTPException(status_code=404, detail="Problem not found")
        if not problem.latex:
            raise HTTPException(status_code=404, detail="Problem has no formula")
        return await state.display_for(problem).update(latex=problem.latex)

    @app.get("/health")
    async def health_check(state: AppState = Depends(get_state)):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "problems_loaded": len(CATALOG),
            "custom_problems": len(state.bank),
            "model": state.settings.model,
            "render_available": state.renderer.available,
        }

    return app


app = create_app()


def main():
    """Serve the API with uvicorn."""
    import argparse

    import uvicorn

    parser = argparse.ArgumentParser(description="Run the MOEMS study API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, default=8000, help="Port (default: 8000)")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
