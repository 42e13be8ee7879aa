# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

# Ensure placeholder secrets exist so services built with defaults can run
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.setdefault("LOG_FILE", "")

from models import KnowledgeCategory, KnowledgeEntry  # noqa: E402
from storage.knowledge_store import InMemoryKnowledgeStore  # noqa: E402


def _make_entry(
    title: str,
    category: KnowledgeCategory | str = KnowledgeCategory.PERSON,
    keywords: list[str] | None = None,
    **details: str,
) -> KnowledgeEntry:
    return KnowledgeEntry(
        category=category, title=title, keywords=keywords or [], details=details
    )


@pytest.fixture
def store() -> InMemoryKnowledgeStore:
    return InMemoryKnowledgeStore()


@pytest.fixture
def make_entry():
    return _make_entry
