"""
CUDA toolchain presence — the gate for symlink and profile setup.

Present if dpkg knows ``cuda-nvcc-<v>`` or ``cuda-<v>``, or if
``nvcc --version`` reports ``release <v>``.
"""

from __future__ import annotations

from jetprep.core.models.config import RunConfig
from jetprep.core.models.outcome import ProbeResult
from jetprep.core.services.detection.heuristics import Check, first_match
from jetprep.core.services.detection.system_deps import command_output, is_pkg_installed

RESOURCE = "cuda-toolchain"


def nvcc_reports(version: str) -> bool:
    output = command_output(["nvcc", "--version"])
    return output is not None and f"release {version}" in output


def cuda_checks(config: RunConfig) -> list[Check]:
    suffix = config.cuda_package_suffix
    return [
        (f"dpkg cuda-nvcc-{suffix}", lambda: is_pkg_installed(f"cuda-nvcc-{suffix}")),
        (f"dpkg cuda-{suffix}", lambda: is_pkg_installed(f"cuda-{suffix}")),
        ("nvcc --version", lambda: nvcc_reports(config.cuda_version)),
    ]


def probe_cuda(config: RunConfig) -> ProbeResult:
    """Raises ProbeError when no check could answer."""
    found = first_match(RESOURCE, cuda_checks(config))
    return ProbeResult(
        resource=RESOURCE,
        satisfied=found is not None,
        observed=found,
        desired=config.cuda_version,
        detail=(
            f"CUDA {config.cuda_version} detected via {found}"
            if found
            else f"CUDA {config.cuda_version} not detected"
        ),
    )
