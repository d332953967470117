"""order_scout.client: HTTP access to the backoffice and the data models it yields."""

from order_scout.client.api import BackofficeClient, extract_revisions
from order_scout.client.fetcher import Fetcher, is_retryable, retry_on_server_error
from order_scout.client.models import BatchResult, Finding, Revision, RevisionSelection

__all__ = [
    "BackofficeClient",
    "extract_revisions",
    "Fetcher",
    "is_retryable",
    "retry_on_server_error",
    "BatchResult",
    "Finding",
    "Revision",
    "RevisionSelection",
]
