"""Client for saving pages through a pagekeeper server."""

from .api_client import PageKeeperClient, SaveArticleError, SaveErrorKind, SaveResult

__all__ = ["PageKeeperClient", "SaveArticleError", "SaveErrorKind", "SaveResult"]
