"""AI gateway: Gemini-backed problem generation, symbol lookup, discovery and solving."""
from .gemini import (
    BATCH_SIZE,
    GatewayError,
    GatewayRequestError,
    GatewayResponseError,
    GatewaySchemaError,
    discover_from_web,
    fetch_symbol_definitions,
    generate_batch,
    harvest_sources,
    make_client,
    solve_custom,
)
from .promote import promote_discovered, promote_generated
from .schemas import (
    DiscoveredProblem,
    DiscoveryResult,
    GeneratedProblem,
    SolvedProblem,
    WebSource,
)

__all__ = [
    "BATCH_SIZE",
    "DiscoveredProblem",
    "DiscoveryResult",
    "GatewayError",
    "GatewayRequestError",
    "GatewayResponseError",
    "GatewaySchemaError",
    "GeneratedProblem",
    "SolvedProblem",
    "WebSource",
    "discover_from_web",
    "fetch_symbol_definitions",
    "generate_batch",
    "harvest_sources",
    "make_client",
    "promote_discovered",
    "promote_generated",
    "solve_custom",
]
