"""In-memory adapters - Demo backend for local development."""

from .backend import InMemoryBuddyBackend

__all__ = ["InMemoryBuddyBackend"]
