"""Shared pytest fixtures."""

import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

# Set test defaults if not provided
if not os.environ.get("ANTHROPIC_API_KEY"):
    os.environ["ANTHROPIC_API_KEY"] = "sk-ant-test-key"
if not os.environ.get("TOOLS_DATA_PATH"):
    os.environ["TOOLS_DATA_PATH"] = "/tmp/test-tools"

from fastapi.testclient import TestClient  # noqa: E402

from app.catalog.models import ToolRecord  # noqa: E402
from app.counts.store import CountStore, get_count_store  # noqa: E402
from app.dependencies import ToolStore, get_tool_store  # noqa: E402
from app.main import app  # noqa: E402

SAMPLE_TOOLS: list[dict[str, Any]] = [
    {
        "id": "autopilot-reset",
        "name": "Autopilot Reset Tool",
        "description": "Remotely reset Autopilot devices in bulk",
        "category": "automation",
        "type": "powershell-script",
        "author": "Jane Doe",
        "githubUrl": "https://github.com/janedoe",
        "dateAdded": "2024-03-01",
        "keywords": ["autopilot", "reset", "intune"],
        "worksWith": ["Intune"],
        "repoUrl": "https://github.com/janedoe/autopilot-reset",
        "repoStats": {"stars": 50, "forks": 4},
        "securityCheck": {"passed": 6, "total": 6, "filesScanned": 3},
    },
    {
        "id": "compliance-report",
        "name": "Compliance Report",
        "description": "Export device compliance state to Excel",
        "category": "reporting",
        "type": "web-app",
        "authors": [{"name": "Alice Martin"}, {"name": "Bob Chen"}],
        "dateAdded": "2024-05-10",
        "keywords": ["compliance", "report", "intune"],
        "worksWith": ["Intune", "Excel"],
        "repoUrl": "https://github.com/alice/compliance-report",
        "repoStats": {"stars": 120},
        "securityCheck": {"passed": 5, "total": 6, "filesScanned": 8},
        "screenshots": [f"/screens/compliance-{i}.png" for i in range(7)],
    },
    {
        "id": "device-inventory",
        "name": "Device Inventory",
        "description": "Collect hardware inventory from managed devices",
        "category": "reporting",
        "type": "cli-tool",
        "author": "Jane Doe",
        "dateAdded": "2023-12-01",
        "keywords": ["inventory", "report"],
    },
    {
        "id": "graph-helper",
        "name": "graph helper",
        "description": "Browser shortcuts for Microsoft Graph calls",
        "category": "automation",
        "type": "browser-extension",
        "author": "Sam Lee",
        "dateAdded": "2024-01-15T09:30:00Z",
        "keywords": ["graph", "automation"],
        "worksWith": ["Intune", "Graph"],
        "repoUrl": "https://github.com/samlee/graph-helper",
    },
    {
        "id": "eclair-packager",
        "name": "Éclair Packager",
        "description": "Wrap installers for Win32 app deployment",
        "category": "packaging",
        "type": "desktop-app",
        "author": "Émile Roux",
        "dateAdded": "not-a-date",
        "repoUrl": "https://github.com/eroux/eclair",
        "securityCheck": {"passed": 0, "total": 6, "filesScanned": 0},
    },
]


@pytest.fixture
def sample_tools() -> list[ToolRecord]:
    """Sample records in dataset (alphabetical) order."""
    tools = [ToolRecord.model_validate(data) for data in SAMPLE_TOOLS]
    return sorted(tools, key=lambda t: t.name.casefold())


@pytest.fixture
def tools_dir(tmp_path: Path) -> Path:
    """Dataset directory with one file per sample tool plus noise files."""
    data = tmp_path / "tools"
    data.mkdir()
    for record in SAMPLE_TOOLS:
        tool = ToolRecord.model_validate(record)
        (data / f"{tool.id}.json").write_text(tool.model_dump_json(by_alias=True), encoding="utf-8")
    (data / "template.json").write_text('{"id": "template", "name": "Template"}', encoding="utf-8")
    (data / "broken.json").write_text("{not json")
    (data / "notes.txt").write_text("ignored")
    return data


@pytest.fixture
def tool_store(tools_dir: Path) -> ToolStore:
    """ToolStore reading the temporary dataset."""
    return ToolStore(data_path=tools_dir)


@pytest.fixture
def count_store(tmp_path: Path) -> CountStore:
    """CountStore backed by a temporary SQLite file, cache disabled."""
    return CountStore(db_path=tmp_path / "counts" / "counts.db", cache_seconds=0.0)


@pytest.fixture
def client(tool_store: ToolStore, count_store: CountStore) -> Iterator[TestClient]:
    """FastAPI test client wired to the temporary stores."""
    app.dependency_overrides[get_tool_store] = lambda: tool_store
    app.dependency_overrides[get_count_store] = lambda: count_store
    yield TestClient(app)
    app.dependency_overrides.clear()
