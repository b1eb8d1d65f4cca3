"""
Shared fixtures for bower-extract tests.
"""

import json
from pathlib import Path
from typing import Dict, Optional

import pytest

from bower_extract.cli_config import reset_config
from bower_extract.error_handling import ErrorHandler


@pytest.fixture
def temp_dir(tmp_path) -> Path:
    """Temporary directory for test files."""
    return tmp_path


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Keep user config files and environment out of the tests."""
    for key in (
        "BOWER_EXTRACT_DIRECTORY",
        "BOWER_EXTRACT_COMMAND",
        "BOWER_EXTRACT_EXECUTABLE",
        "BOWER_EXTRACT_RUN_COMMAND",
        "BOWER_EXTRACT_COMMAND_TIMEOUT",
        "BOWER_EXTRACT_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def error_handler() -> ErrorHandler:
    """Fresh error channel, isolated from the global one."""
    return ErrorHandler(logger_name="bower_extract.tests")


class ProjectBuilder:
    """Builds a project folder with a bower.json and installed components."""

    def __init__(self, root: Path, directory: str = "bower_components"):
        self.root = root
        self.directory = directory

    @property
    def base_dir(self) -> Path:
        return self.root / self.directory

    def manifest(
        self,
        dependencies: Dict[str, str],
        subsets: Optional[Dict[str, object]] = None,
    ) -> Path:
        data: Dict[str, object] = {"name": "demo-app", "dependencies": dependencies}
        if subsets is not None:
            data["dependencies-subset"] = subsets
        path = self.root / "bower.json"
        path.write_text(json.dumps(data, indent=2))
        return path

    def component(
        self,
        name: str,
        files: Dict[str, str],
        manifest: Optional[Dict[str, object]] = None,
        manifest_name: str = "bower.json",
    ) -> Path:
        folder = self.base_dir / name
        folder.mkdir(parents=True, exist_ok=True)
        for filename, content in files.items():
            target = folder / filename
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        if manifest is not None:
            (folder / manifest_name).write_text(json.dumps(manifest))
        return folder


@pytest.fixture
def project(temp_dir) -> ProjectBuilder:
    """Empty project rooted in a temporary directory."""
    return ProjectBuilder(temp_dir)
