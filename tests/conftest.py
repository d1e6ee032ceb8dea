"""Shared fixtures and helpers for tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from tree_sitter import Parser
from tree_sitter_language_pack import get_parser

from runbook_studio.core.bookmarks import AnnotationStore
from runbook_studio.core.grammar import TreeSitterGrammar
from runbook_studio.core.markers import TextMarkerService
from runbook_studio.models import SyntaxNode
from runbook_studio.remote import InMemoryRunbookStore

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def node(node_type: str, text: str = "", *children: SyntaxNode) -> SyntaxNode:
    """Build a ``SyntaxNode`` by hand; offsets are irrelevant to tree walkers."""
    return SyntaxNode(
        type=node_type,
        start_offset=0,
        end_offset=len(text),
        start_row=0,
        end_row=0,
        text=text,
        children=list(children) or None,
    )


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def powershell_parser() -> Parser:
    """Return a tree-sitter parser for PowerShell."""
    return get_parser("powershell")


@pytest.fixture
def grammar() -> TreeSitterGrammar:
    return TreeSitterGrammar()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def in_memory_store() -> InMemoryRunbookStore:
    return InMemoryRunbookStore()


@pytest.fixture
def marker_service() -> TextMarkerService:
    return TextMarkerService()


@pytest.fixture
def annotations(marker_service: TextMarkerService) -> AnnotationStore:
    return AnnotationStore(marker_service)
