"""Search cluster package: `client` wraps the installed `opensearchpy` client."""

__all__ = ["client"]
