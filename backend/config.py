"""Runtime configuration for the MOEMS study backend."""
import os
from pathlib import Path

from pydantic import BaseModel

from backend.catalog.models import Category, Division

# Defaults
GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
MODEL = "gemini-3-flash-preview"
SOLVER_MODEL = "gemini-3-pro-preview"
STORAGE_PATH = Path(__file__).parent / "data" / "storage.json"
STORAGE_KEY = "moems_custom_problems"


class Settings(BaseModel):
    """Settings resolved from the environment at startup."""
    api_key: str | None = None
    base_url: str = GEMINI_BASE_URL
    model: str = MODEL
    solver_model: str = SOLVER_MODEL
    timeout: float = 60.0
    storage_path: Path = STORAGE_PATH
    storage_key: str = STORAGE_KEY
    # Applied to discovered problems, which carry no category or division
    default_category: Category = Category.LOGIC
    default_division: Division = Division.M
    render_initial_delay: float = 0.05
    render_max_delay: float = 0.5
    render_max_attempts: int = 5

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        values: dict = {
            "api_key": env.get("GEMINI_API_KEY") or env.get("API_KEY"),
        }
        optional = {
            "base_url": "GEMINI_BASE_URL",
            "model": "GEMINI_MODEL",
            "solver_model": "GEMINI_SOLVER_MODEL",
            "timeout": "GEMINI_TIMEOUT",
            "storage_path": "MOEMS_STORAGE_PATH",
            "default_category": "MOEMS_DEFAULT_CATEGORY",
            "default_division": "MOEMS_DEFAULT_DIVISION",
            "render_initial_delay": "MOEMS_RENDER_INITIAL_DELAY",
            "render_max_delay": "MOEMS_RENDER_MAX_DELAY",
            "render_max_attempts": "MOEMS_RENDER_MAX_ATTEMPTS",
        }
        for field, var in optional.items():
            if env.get(var):
                values[field] = env[var]
        return cls(**values)
