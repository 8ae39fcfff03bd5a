"""HTTP client for the externally owned AI backend."""

from .client import BackendClient, BackendError, get_backend_client

__all__ = ["BackendClient", "BackendError", "get_backend_client"]
