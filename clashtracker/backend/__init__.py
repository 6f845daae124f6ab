"""Backend package for the clash tracker."""

from .config import BackendSettings, configure_logging, load_settings
from .engine import TrackerEngine
from .errors import InvalidInputError, InvalidStateError, NotFoundError, TrackerError, UnauthorizedError
from .security import hash_token, sign_context, unsign_context, verify_token
from .state import build_initial_encounter, build_initial_player
from .store import InMemoryTrackerStore, JsonFileTrackerStore, PostgresTrackerStore, TrackerStore, create_store

__all__ = [
    "BackendSettings",
    "build_initial_encounter",
    "build_initial_player",
    "configure_logging",
    "create_store",
    "hash_token",
    "InMemoryTrackerStore",
    "InvalidInputError",
    "InvalidStateError",
    "JsonFileTrackerStore",
    "load_settings",
    "NotFoundError",
    "PostgresTrackerStore",
    "sign_context",
    "TrackerEngine",
    "TrackerError",
    "TrackerStore",
    "UnauthorizedError",
    "unsign_context",
    "verify_token",
]
