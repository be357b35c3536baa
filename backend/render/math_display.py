"""Adapter around an optionally-present LaTeX rendering capability.

The capability is supplied through ``MathRenderer.provide``, either at app
startup (``MathMLCapability``) or later by the hosting environment. Renders
wait for it with a capped backoff and fall back to the raw formula as plain
text when it never arrives or fails.
"""
import asyncio
import logging
from typing import Any, Optional, Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class RenderSurface:
    """Target a capability writes rendered markup into."""

    def __init__(self):
        self.html: Optional[str] = None


class RenderCapability(Protocol):
    def render(self, formula: str, surface: RenderSurface, options: dict[str, Any]) -> None:
        ...


class RenderedMath(BaseModel):
    latex: str
    block: bool
    html: Optional[str] = None
    text: Optional[str] = None  # set when falling back to the raw formula
    fallback: bool = False


class MathRenderer:
    def __init__(
        self,
        initial_delay: float = 0.05,
        max_delay: float = 0.5,
        max_attempts: int = 5,
    ):
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.max_attempts = max_attempts
        self._capability: Optional[RenderCapability] = None
        self._ready: Optional[asyncio.Future] = None

    @property
    def available(self) -> bool:
        return self._capability is not None

    def provide(self, capability: RenderCapability) -> None:
        """Make the rendering capability available. Only the first call has effect."""
        if self._capability is not None:
            return
        self._capability = capability
        if self._ready is None or self._ready.done():
            return
        loop = self._ready.get_loop()
        if not loop.is_closed():
            loop.call_soon_threadsafe(self._resolve)

    def _resolve(self) -> None:
        if self._ready is not None and not self._ready.done():
            self._ready.set_result(self._capability)

    def _readiness(self) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        if self._ready is None or self._ready.get_loop() is not loop:
            self._ready = loop.create_future()
            if self._capability is not None:
                self._ready.set_result(self._capability)
        return self._ready

    async def wait_ready(self) -> Optional[RenderCapability]:
        """Wait for the capability with exponential backoff; None once attempts run out."""
        if self._capability is not None:
            return self._capability
        ready = self._readiness()
        delay = self.initial_delay
        for _ in range(self.max_attempts):
            await asyncio.wait({ready}, timeout=delay)
            if self._capability is not None:
                return self._capability
            delay = min(delay * 2, self.max_delay)
        return None

    async def render(self, latex: str, block: bool = False) -> RenderedMath:
        capability = await self.wait_ready()
        if capability is None:
            logger.warning("Math rendering unavailable; showing raw formula")
            return RenderedMath(latex=latex, block=block, text=latex, fallback=True)

        surface = RenderSurface()
        try:
            capability.render(latex, surface, {"throwOnError": False, "displayMode": block})
        except Exception as e:
            logger.error("Math rendering error for %r: %s", latex, e)
            return RenderedMath(latex=latex, block=block, text=latex, fallback=True)
        return RenderedMath(latex=latex, block=block, html=surface.html)


class MathDisplay:
    """One displayed formula. Re-renders only when the formula or display mode changes."""

    def __init__(self, renderer: MathRenderer, latex: str, block: bool = False):
        self.renderer = renderer
        self.latex = latex
        self.block = block
        self._rendered: Optional[RenderedMath] = None

    async def update(self, latex: Optional[str] = None, block: Optional[bool] = None) -> RenderedMath:
        changed = False
        if latex is not None and latex != self.latex:
            self.latex = latex
            changed = True
        if block is not None and block != self.block:
            self.block = block
            changed = True
        if self._rendered is None or changed:
            self._rendered = await self.renderer.render(self.latex, self.block)
        return self._rendered
