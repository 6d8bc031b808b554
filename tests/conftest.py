" generic fixtures "
import os
import stat
import sys
from pathlib import Path

import pytest

from carapace_bridge.config import Configuration
from carapace_bridge.host import LocalHost
from carapace_bridge.logging_setup import get_logger
from carapace_bridge.schema import SETTINGS_SCHEMA

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell scripts")


def pytest_configure():
    "Runs once before all"
    from carapace_bridge.logging_setup import init_logger

    init_logger(os.devnull, force_debug=True)


@pytest.fixture
def test_logger():
    "A logger for the code under test"
    return get_logger("tests")


def make_settings(test_logger, **settings) -> Configuration:
    "Enabled settings, no kill by name unless asked"
    return Configuration({"enable": True, "kill_by_name": False, **settings}, logger=test_logger, schema=SETTINGS_SCHEMA)


def make_host(test_logger, aliases=None, argmatchers=frozenset(), **settings) -> LocalHost:
    "A LocalHost with test settings"
    return LocalHost(make_settings(test_logger, **settings), aliases=aliases, argmatchers=argmatchers, log=test_logger)


def write_script(path: Path, body: str) -> Path:
    "Write an executable shell script"
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def bin_dir(tmp_path, monkeypatch):
    "A directory in front of PATH, holding fake commands"
    directory = tmp_path / "bin"
    directory.mkdir()
    monkeypatch.setenv("PATH", f"{directory}{os.pathsep}{os.environ.get('PATH', '')}")
    monkeypatch.delenv("PATHEXT", raising=False)
    yield directory
