"""
System dependency checking.

Read-only probes for package/binary availability. Uses subprocess for
package manager queries. A checker that cannot run at all raises
ProbeError: "not installed" and "cannot tell" are different answers.
"""

from __future__ import annotations

import shutil
import subprocess

from jetprep.core.errors import ProbeError


def command_exists(name: str) -> bool:
    """Whether ``name`` resolves on the execution path."""
    return shutil.which(name) is not None


def is_pkg_installed(pkg: str) -> bool:
    """Check if a single Debian package is installed.

    Uses ``dpkg-query -W -f='${Status}' PKG``; a package that was
    removed but not purged reports ``deinstall ok config-files`` and
    counts as missing.

    Raises:
        ProbeError: dpkg-query is not available or could not run.
    """
    try:
        r = subprocess.run(
            ["dpkg-query", "-W", "-f=${Status}", pkg],
            capture_output=True, text=True,
        )
    except FileNotFoundError as e:
        raise ProbeError(pkg, "dpkg-query not found; not an apt-based host?") from e
    except OSError as e:
        raise ProbeError(pkg, f"cannot query dpkg: {e}") from e

    return "install ok installed" in r.stdout


def check_system_deps(packages: list[str]) -> dict[str, list[str]]:
    """Check which system packages are installed.

    Returns:
        {"missing": ["pkg1", ...], "installed": ["pkg2", ...]}
    """
    missing: list[str] = []
    installed: list[str] = []
    for pkg in packages:
        if is_pkg_installed(pkg):
            installed.append(pkg)
        else:
            missing.append(pkg)
    return {"missing": missing, "installed": installed}


def snap_installed(name: str) -> bool:
    """Whether ``name`` is registered as a snap. False if snapd is absent."""
    if not command_exists("snap"):
        return False
    try:
        r = subprocess.run(
            ["snap", "list", name],
            capture_output=True,
        )
    except OSError as e:
        raise ProbeError(name, f"cannot query snap: {e}") from e
    return r.returncode == 0


def pip_package_installed(name: str, pip: str = "pip3") -> bool:
    """Whether ``pip show NAME`` succeeds. False if pip itself is missing."""
    if not command_exists(pip):
        return False
    try:
        r = subprocess.run(
            [pip, "show", name],
            capture_output=True,
        )
    except OSError as e:
        raise ProbeError(name, f"cannot query {pip}: {e}") from e
    return r.returncode == 0


def command_output(argv: list[str]) -> str | None:
    """Combined stdout+stderr of a version command, or None if it is not installed.

    Raises:
        ProbeError: the command is installed but could not be run.
    """
    if not command_exists(argv[0]):
        return None
    try:
        r = subprocess.run(argv, capture_output=True, text=True)
    except OSError as e:
        raise ProbeError(argv[0], f"cannot run {argv[0]}: {e}") from e
    return (r.stdout or "") + (r.stderr or "")
