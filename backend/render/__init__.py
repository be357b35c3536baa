"""Math rendering adapter."""
from .math_display import MathDisplay, MathRenderer, RenderCapability, RenderedMath, RenderSurface
from .mathml import MathMLCapability

__all__ = [
    "MathDisplay",
    "MathMLCapability",
    "MathRenderer",
    "RenderCapability",
    "RenderSurface",
    "RenderedMath",
]
