"""
RunConfig — every target and flag for one convergence run.

Built once at startup (config file, then CLI overrides) and threaded
into every operation. Frozen: nothing may flip a flag mid-run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REQUIRED_PACKAGES: list[str] = [
    "cuda-nvcc-10-2",
    "curl",
    "git",
    "python3-pip",
    "nano",
    "cmake",
    "libcurl4-openssl-dev",
    "build-essential",
    "gcc-8",
    "g++-8",
    "ccache",
    "libcublas-dev",
]

# Sentinel accepted by the VS Code update service
LATEST = "latest"

VSCODE_URL_TEMPLATE = "https://update.code.visualstudio.com/{version}/linux-deb-{arch}/stable"


def _default_profile_path() -> Path:
    return Path.home() / ".bashrc"


def _default_audit_log() -> Path:
    return Path.home() / ".local" / "state" / "jetprep" / "audit.ndjson"


class RunConfig(BaseModel):
    """Immutable run configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ── Run mode ─────────────────────────────────────────────────
    dry_run: bool = False
    use_sudo: bool = True

    # ── Swap ─────────────────────────────────────────────────────
    manage_swap: bool = True
    swap_size_gb: int = Field(default=8, ge=1)
    swap_path: Path = Path("/swapfile")
    fstab_path: Path = Path("/etc/fstab")

    # ── System packages ──────────────────────────────────────────
    update_system: bool = True
    required_packages: list[str] = Field(
        default_factory=lambda: list(DEFAULT_REQUIRED_PACKAGES)
    )

    # ── Optional components ──────────────────────────────────────
    install_jetson_stats: bool = True
    install_vscode: bool = True
    vscode_version: str = "1.85.2"
    vscode_arch: str = "arm64"
    vscode_package: str = "code"
    vscode_download_dir: Path = Path("/tmp")

    # ── CUDA toolchain ───────────────────────────────────────────
    cuda_version: str = "10.2"
    cuda_prefix: Path = Path("/usr/local")
    profile_path: Path = Field(default_factory=_default_profile_path)

    # ── History ──────────────────────────────────────────────────
    audit_log: Path | None = Field(default_factory=_default_audit_log)

    @field_validator("vscode_version", "vscode_arch", "cuda_version", "vscode_package")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("required_packages")
    @classmethod
    def _no_blank_packages(cls, value: list[str]) -> list[str]:
        return [p.strip() for p in value if p.strip()]

    @field_validator("profile_path", "swap_path", "fstab_path", "cuda_prefix",
                     "vscode_download_dir", "audit_log")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    # ── Derived targets ──────────────────────────────────────────

    @property
    def cuda_link(self) -> Path:
        """Generic toolchain path (``/usr/local/cuda``)."""
        return self.cuda_prefix / "cuda"

    @property
    def cuda_source(self) -> Path:
        """Versioned toolchain directory (``/usr/local/cuda-10.2``)."""
        return self.cuda_prefix / f"cuda-{self.cuda_version}"

    @property
    def cuda_package_suffix(self) -> str:
        """Version in Debian package naming, e.g. ``10-2``."""
        return self.cuda_version.replace(".", "-")

    @property
    def env_lines(self) -> list[str]:
        """Profile lines exporting the toolchain into login shells."""
        link = self.cuda_link
        return [
            f"export CUDA_HOME={link}",
            f"export LD_LIBRARY_PATH=$LD_LIBRARY_PATH:{link}/lib64",
            f"export PATH=$PATH:{link}/bin",
        ]

    @property
    def vscode_url(self) -> str:
        return VSCODE_URL_TEMPLATE.format(
            version=self.vscode_version, arch=self.vscode_arch
        )

    @property
    def vscode_deb_path(self) -> Path:
        return self.vscode_download_dir / f"vscode-linux-deb.{self.vscode_arch}.deb"

    @property
    def fstab_entry(self) -> str:
        return f"{self.swap_path} swap swap defaults 0 0"
