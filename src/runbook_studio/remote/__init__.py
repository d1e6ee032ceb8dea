from runbook_studio.remote.http_store import HttpRunbookStore, runbook_url
from runbook_studio.remote.memory import InMemoryFetch, InMemoryRunbookStore

__all__ = [
    "HttpRunbookStore",
    "InMemoryFetch",
    "InMemoryRunbookStore",
    "runbook_url",
]
