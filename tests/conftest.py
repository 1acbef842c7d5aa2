"""
Pytest configuration and fixtures for Tool Studio testing.

Every registry built here runs on an isolated store: an in-memory store or a
SQLite database inside the test's temporary directory.
"""

import os
from pathlib import Path
from typing import Any, Dict
from unittest.mock import patch

import pytest

from toolstudio.core.models import ToolCategory
from toolstudio.core.storage.database_manager import MemoryKeyValueStore, SQLiteKeyValueStore
from toolstudio.core.tools.tool_registry import ToolRegistryService
from toolstudio.utils.config import Config


def make_tool_data(tool_id: str, **overrides: Any) -> Dict[str, Any]:
    """Valid tool fields for ``tool_id``; keyword arguments replace fields."""
    data = {
        "id": tool_id,
        "name": tool_id.replace("-", " ").title(),
        "description": f"Description of {tool_id}",
        "category": ToolCategory.UTILITIES,
        "icon": "Box",
        "path": f"/tools/{tool_id}",
        "tags": [],
        "version": "1.0.0",
    }
    data.update(overrides)
    return data


@pytest.fixture
def tool_data():
    """Factory for valid tool definitions."""
    return make_tool_data


@pytest.fixture(scope="function")
def isolated_environment(tmp_path):
    """Point configuration at a temporary directory for the duration of a test."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with patch.dict(os.environ, {
        "TOOLSTUDIO_CONFIG_DIR": str(config_dir),
        "TOOLSTUDIO_DB_PATH": str(tmp_path / "toolstudio.db"),
    }):
        yield tmp_path


@pytest.fixture
def config(isolated_environment):
    """Configuration isolated from the user's files."""
    return Config()


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def sqlite_store(tmp_path: Path):
    """SQLite store in the test's temporary directory."""
    store = SQLiteKeyValueStore(tmp_path / "registry.db")
    yield store
    store.close()


@pytest.fixture
def sample_tool_data():
    """A valid tool definition using persisted (camelCase) keys."""
    return {
        "id": "color-picker",
        "name": "Color Picker",
        "description": "Pick colors and convert between formats",
        "category": "design",
        "icon": "Palette",
        "path": "/tools/color-picker",
        "tags": ["color", "hex", "palette"],
        "isFavorite": False,
        "version": "1.0.0",
    }


@pytest.fixture
def default_tools():
    """A small default set spanning several categories."""
    return [
        make_tool_data("text-cleaner", name="Text Cleaner", tags=["text", "cleaning"]),
        make_tool_data("color-picker", name="Color Picker",
                       category=ToolCategory.DESIGN, tags=["color", "palette"]),
        make_tool_data("calculator", name="Calculator", tags=["math"], is_favorite=True),
        make_tool_data("markdown-formatter", name="Markdown Formatter",
                       category=ToolCategory.PRODUCTIVITY, tags=["markdown", "text"]),
    ]


@pytest.fixture
def registry(memory_store, config, default_tools):
    """Initialized registry over an in-memory store."""
    service = ToolRegistryService(store=memory_store, config=config)
    service.initialize(default_tools)
    yield service
    service.close()


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
