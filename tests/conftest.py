"""
Shared test fixtures and configuration.

Host state lives in a ``FakeHost``: the package database, PATH, pip
and snap registries are plain sets, patched over the probe functions
in every module that imports them. Filesystem targets (swap file,
fstab, shell profile, CUDA prefix) point into ``tmp_path``.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from jetprep.adapters.mock import RecordingRunner
from jetprep.core.engine.runner import ActionRunner
from jetprep.core.errors import ProbeError
from jetprep.core.models.action import Action
from jetprep.core.models.config import RunConfig
from jetprep.core.services.detection.files import BYTES_PER_GB


class FakeHost:
    """In-memory package database and command registry."""

    def __init__(self):
        self.packages: set[str] = set()
        self.commands: set[str] = set()
        self.snaps: set[str] = set()
        self.pip: set[str] = set()
        self.nvcc_release: str | None = None
        self.broken_dpkg = False

    def is_pkg_installed(self, pkg: str) -> bool:
        if self.broken_dpkg:
            raise ProbeError(pkg, "dpkg-query not found; not an apt-based host?")
        return pkg in self.packages

    def command_exists(self, name: str) -> bool:
        return name in self.commands

    def snap_installed(self, name: str) -> bool:
        return name in self.snaps

    def pip_package_installed(self, name: str, pip: str = "pip3") -> bool:
        return name in self.pip

    def command_output(self, argv: list[str]) -> str | None:
        if argv[0] == "nvcc" and self.nvcc_release:
            return (
                "nvcc: NVIDIA (R) Cuda compiler driver\n"
                f"Cuda compilation tools, release {self.nvcc_release}, V{self.nvcc_release}.300\n"
            )
        return None


# Every module that binds a probe function by name
_PATCH_POINTS: dict[str, tuple[str, ...]] = {
    "jetprep.core.services.detection.system_deps": (
        "is_pkg_installed", "command_exists", "snap_installed",
        "pip_package_installed", "command_output",
    ),
    "jetprep.core.services.detection.cuda": ("is_pkg_installed", "command_output"),
    "jetprep.core.services.converge.vscode": (
        "is_pkg_installed", "command_exists", "snap_installed",
    ),
    "jetprep.core.services.converge.jetson_stats": (
        "command_exists", "pip_package_installed",
    ),
}


@pytest.fixture
def host(monkeypatch) -> FakeHost:
    """A fake host with nothing installed."""
    fake = FakeHost()
    for module, names in _PATCH_POINTS.items():
        for name in names:
            monkeypatch.setattr(f"{module}.{name}", getattr(fake, name))
    return fake


@pytest.fixture
def make_config(tmp_path: Path):
    """Factory for a RunConfig whose targets all live under tmp_path."""
    home = tmp_path / "home"
    home.mkdir()
    prefix = tmp_path / "usr-local"
    prefix.mkdir()

    def _make(**overrides) -> RunConfig:
        values = {
            "use_sudo": False,
            "swap_size_gb": 2,
            "swap_path": tmp_path / "swapfile",
            "fstab_path": tmp_path / "fstab",
            "cuda_prefix": prefix,
            "profile_path": home / ".bashrc",
            "vscode_download_dir": tmp_path / "downloads",
            "audit_log": tmp_path / "state" / "audit.ndjson",
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def config(make_config) -> RunConfig:
    return make_config()


@pytest.fixture
def backend(host: FakeHost) -> RecordingRunner:
    """A recording runner whose commands take effect on the fake host."""
    runner = RecordingRunner()
    wire_effects(runner, host)
    return runner


@pytest.fixture
def announced() -> list[str]:
    """Lines the action runner announced, in order."""
    return []


@pytest.fixture
def runner(backend: RecordingRunner, announced: list[str]) -> ActionRunner:
    return ActionRunner(backend, announce=announced.append)


@pytest.fixture
def dry_runner(backend: RecordingRunner, announced: list[str]) -> ActionRunner:
    return ActionRunner(backend, dry_run=True, announce=announced.append)


def make_sparse_file(path: Path, size_gb: int) -> None:
    """Create a file of ``size_gb`` GB without allocating blocks."""
    with path.open("wb") as f:
        f.truncate(size_gb * BYTES_PER_GB)


@pytest.fixture
def sparse_file():
    return make_sparse_file


def wire_effects(backend: RecordingRunner, host: FakeHost) -> None:
    """Make recorded commands change the fake host like the real ones would."""

    def fallocate(action: Action) -> None:
        size, path = action.argv[2], Path(action.argv[3])
        make_sparse_file(path, int(size.rstrip("G")))

    def remove(action: Action) -> None:
        Path(action.argv[2]).unlink(missing_ok=True)

    def tee_append(action: Action) -> None:
        with Path(action.argv[2]).open("a", encoding="utf-8") as f:
            f.write(action.stdin or "")

    def apt_get_install(action: Action) -> None:
        host.packages.update(action.argv[3:])

    def pip_install(action: Action) -> None:
        host.pip.add(action.argv[-1])

    def download(action: Action) -> None:
        dest = Path(action.argv[3])
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(b"!<arch>\n")

    def deb_install(action: Action) -> None:
        host.packages.add("code")

    def symlink(action: Action) -> None:
        os.symlink(action.argv[2], action.argv[3])

    backend.on("fallocate", fallocate)
    backend.on("rm -f", remove)
    backend.on("tee -a", tee_append)
    backend.on("apt-get install", apt_get_install)
    backend.on("pip3 install", pip_install)
    backend.on("wget", download)
    backend.on("apt install", deb_install)
    backend.on("ln -s", symlink)
