from pathlib import Path
from typing import Any

import pytest

from docwf.application.catalog import WorkflowCatalog
from docwf.domain.models.documents import DocumentName
from docwf.domain.persistence.document_store import InMemoryDocumentStore
from docwf.domain.providers.ai_provider import AIProvider
from docwf.domain.providers.provider_factory import ProviderFactory


@pytest.fixture(scope="session")
def repo_root() -> Path:
    """Resolve the repository root directory.

    Assumes tests live under <repo>/tests/.
    """
    return Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep a developer's ~/.docwf/config.yml out of every test.

    If a test needs a user config, it should write one under this home.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    return home


class ScriptedProvider(AIProvider):
    """Returns canned responses keyed by step name and records every call.

    A step without a scripted response gets None, like the manual provider.
    """

    def __init__(self, responses: dict[str, str] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[dict[str, Any]] = []

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        return {
            "name": "scripted",
            "description": "Scripted provider for testing",
            "requires_config": False,
            "config_keys": [],
        }

    def validate(self) -> None:
        pass

    def generate(self, instruction: str, context: dict[str, Any] | None = None) -> str | None:
        context = context or {}
        self.calls.append({"instruction": instruction, **context})
        return self.responses.get(context.get("step_name", ""))


@pytest.fixture(autouse=True)
def _register_test_providers():
    """Register the scripted provider and restore the registry afterward."""
    original_registry = dict(ProviderFactory._registry)
    ProviderFactory.register("scripted", ScriptedProvider)

    yield

    ProviderFactory._registry.clear()
    ProviderFactory._registry.update(original_registry)


@pytest.fixture(scope="session")
def catalog() -> WorkflowCatalog:
    return WorkflowCatalog.load_default()


@pytest.fixture
def scripted_provider():
    """Factory for scripted providers: ``scripted_provider({"step": "text"})``."""
    return ScriptedProvider


@pytest.fixture
def project_documents() -> dict[DocumentName, str]:
    """A small but complete set of project documents."""
    return {
        DocumentName.OVERVIEW: "# Overview\n\nA planning tool for solo developers.\n",
        DocumentName.ROADMAP: (
            "# Roadmap\n\n## Current Focus\n**Milestone:** M1 — Foundations\n\n"
            "### M1 — Foundations\n**Status:** active\n\n#### VS1 — Core\n"
        ),
        DocumentName.TASKS: (
            "# Tasks\n\n## Now\n\n## Next\n- [ ] Add caching [[Roadmap#VS1 — Core]]\n"
            "- [x] Write parser\n\n## Later\n- [ ] Export to PDF\n"
        ),
        DocumentName.LOG: (
            "# Log\n\n## 2024-01-15\n\n11:48am\nStarted the MCP server.\n\n"
            "2:00pm - Docs\nWrote the README.\n"
        ),
        DocumentName.IDEAS: "# Ideas\n\n## Plugins\nLet users add their own workflows.\n",
        DocumentName.ARCHIVE: "# Archive\n\n## Completed Work\n",
    }


@pytest.fixture
def memory_store(project_documents) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(project_documents)
