"""Integration test fixtures.

Hooks run here as real child processes, the way the host invokes them.
"""

import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

SRC_DIR = Path(__file__).resolve().parents[2] / "src"


@pytest.fixture
def hook_env(home_dir: Path, state_dir: Path) -> dict:
    """Environment for hook child processes."""
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(
        filter(None, [str(SRC_DIR), env.get("PYTHONPATH")])
    )
    env["HOME"] = str(home_dir)
    env["AUTOREAD_STATE_DIR"] = str(state_dir)
    return env


@pytest.fixture
def run_module(hook_env: dict):
    """Run `python -m <module>` with JSON on stdin, returning the process result."""

    def _run(module: str, payload: dict) -> subprocess.CompletedProcess:
        return subprocess.run(
            [sys.executable, "-m", module],
            input=json.dumps(payload),
            capture_output=True,
            text=True,
            env=hook_env,
            timeout=60,
        )

    return _run
