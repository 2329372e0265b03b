import os
from pathlib import Path

import pytest

from promptfiles.core.discovery.promptignore import PROMPT_HOME_OVERRIDE_ENV


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keeps the developer's ~/.promptignore, git config and prompt config out of tests."""
    fake_home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv(PROMPT_HOME_OVERRIDE_ENV, str(fake_home))
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", os.devnull)
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(fake_home / ".config"))
    monkeypatch.setattr("promptfiles.config.loader.USER_CONFIG_FILE", fake_home / "config.toml")
    return fake_home


@pytest.fixture
def make_tree(tmp_path: Path):
    """Writes {relative_path: content} into a fresh project directory and returns it."""
    def _make(files: dict, root: Path = None) -> Path:
        base = root if root is not None else tmp_path / "proj"
        base.mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            target = base / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content)
        return base
    return _make
