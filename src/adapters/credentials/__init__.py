"""Credential store adapters - Session hand-off implementations."""

from .memory import InMemoryCredentialStore

__all__ = ["InMemoryCredentialStore"]
