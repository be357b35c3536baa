"""Persistent custom problem bank."""
from .storage import LocalStorage
from .store import CustomBank

__all__ = ["CustomBank", "LocalStorage"]
