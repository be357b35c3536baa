"""Server-side rendering capability that turns LaTeX into MathML markup."""
from typing import Any

from latex2mathml.converter import convert

from .math_display import RenderSurface


class MathMLCapability:
    """Writes MathML for a formula into the surface, honouring ``displayMode``."""

    def render(self, formula: str, surface: RenderSurface, options: dict[str, Any]) -> None:
        display = "block" if options.get("displayMode") else "inline"
        surface.html = convert(formula, display=display)
