"""HTTP adapters - BuddyBuilder backend API client."""

from .client import BuddyBuilderApiClient, create_http_client

__all__ = ["BuddyBuilderApiClient", "create_http_client"]
