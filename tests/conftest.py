"""
Shared test fixtures and configuration.

Every test runs against a temporary home directory and a PATH that only
contains a temporary ``bin`` directory, so probes see exactly the tools
a test puts there. External commands go to a ``MockCommandRunner``;
downloads go to a ``FakeFetcher``.
"""

import io
import logging
import zipfile
from pathlib import Path
from unittest.mock import patch

import pytest

from termsetup.adapters.mock import MockCommandRunner
from termsetup.core.context import RunContext
from termsetup.core.errors import DownloadFailed
from termsetup.core.models.platform import OSFamily
from termsetup.core.models.settings import FontSettings, Settings, TimeoutSettings
from termsetup.core.observability.run_log import RunLog
from termsetup.core.services.bootstrap.data.package_managers import PACKAGE_MANAGERS
from termsetup.core.services.bootstrap.execution.backup import BackupFacility
from termsetup.ui.cli.gate import ConfirmationGate

RUN_ID = "20260101_120000"


def make_tool(bin_dir: Path, name: str) -> Path:
    """Drop an executable stub named ``name`` into ``bin_dir``."""
    bin_dir.mkdir(parents=True, exist_ok=True)
    path = bin_dir / name
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


def make_zip(members: dict[str, bytes]) -> bytes:
    """Build an in-memory zip archive."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_STORED) as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return buf.getvalue()


def font_zip() -> bytes:
    return make_zip({
        "HackNerdFont-Regular.ttf": b"\x00" * 256,
        "HackNerdFont-Bold.ttf": b"\x00" * 256,
        "LICENSE.md": b"MIT",
        "readme.md": b"Hack",
    })


class ScriptedGate(ConfirmationGate):
    """Answers prompts by substring match; unmatched prompts take their default."""

    def __init__(self, answers: dict[str, bool] | None = None, mode: str = "ask"):
        super().__init__(mode)  # type: ignore[arg-type]
        self.answers = answers or {}
        self.asked: list[str] = []

    def confirm(self, prompt: str, default: bool | None = None) -> bool:
        self.asked.append(prompt)
        for key, answer in self.answers.items():
            if key in prompt:
                return answer
        return bool(default)


class FakeFetcher:
    """Serves canned bytes per URL; unknown URLs fail like a network error."""

    def __init__(self, responses: dict[str, bytes] | None = None):
        self.responses = responses or {}
        self.calls: list[tuple[str, Path]] = []

    def __call__(self, url: str, dest: Path, timeouts: TimeoutSettings) -> int:
        self.calls.append((url, dest))
        if url not in self.responses:
            raise DownloadFailed(f"Download of {url} failed: 404")
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.responses[url])
        return len(self.responses[url])


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handlers installed by setup_logging() so captured streams don't leak across tests."""
    loggers = [logging.getLogger(), logging.getLogger("termsetup.run")]
    saved = [(lg, list(lg.handlers), lg.level, lg.propagate) for lg in loggers]
    yield
    for lg, handlers, level, propagate in saved:
        lg.handlers[:] = handlers
        lg.setLevel(level)
        lg.propagate = propagate


@pytest.fixture(autouse=True)
def not_root():
    """Tests run as a regular user even inside a root container."""
    with patch(
        "termsetup.core.services.bootstrap.execution.privileges.is_root",
        return_value=False,
    ):
        yield


@pytest.fixture
def home(tmp_path: Path) -> Path:
    h = tmp_path / "home"
    h.mkdir()
    return h


@pytest.fixture
def bin_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    d = tmp_path / "bin"
    d.mkdir()
    monkeypatch.setenv("PATH", str(d))
    monkeypatch.setenv("SHELL", "/bin/bash")
    monkeypatch.delenv("ZSH_CUSTOM", raising=False)
    return d


@pytest.fixture
def settings() -> Settings:
    """Stock settings with a font size floor small enough for test archives."""
    return Settings(font=FontSettings(min_bytes=64))


@pytest.fixture
def runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def make_ctx(home: Path, bin_dir: Path, settings: Settings, runner: MockCommandRunner):
    """Factory for a RunContext wired to the temporary home and fakes."""

    def _make(
        *,
        os_family: OSFamily = OSFamily.LINUX,
        manager: str = "apt",
        gate: ConfirmationGate | None = None,
        fetch: FakeFetcher | None = None,
        settings_override: Settings | None = None,
        env: dict[str, str] | None = None,
    ) -> RunContext:
        base_env = {"PATH": str(bin_dir), "HOME": str(home), "SHELL": "/bin/bash"}
        return RunContext(
            os_family=os_family,
            package_manager=PACKAGE_MANAGERS[manager],
            settings=settings_override or settings,
            runner=runner,
            gate=gate or ScriptedGate(),
            log=RunLog(),
            backups=BackupFacility(home / ".terminal-setup-backups" / RUN_ID),
            fetch=fetch or FakeFetcher(),
            home=home,
            log_file=home / "terminal-setup.log",
            run_id=RUN_ID,
            env={**base_env, **(env or {})},
        )

    return _make


@pytest.fixture
def ctx(make_ctx) -> RunContext:
    return make_ctx()
