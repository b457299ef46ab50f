"""
Tests for the convergence operations — one class per managed resource,
then whole-sequence idempotence and dry-run behavior.
"""

import os

import pytest

from jetprep.core.engine.orchestrator import converge
from jetprep.core.engine.runner import ActionRunner
from jetprep.core.errors import ActionError, NotFoundError
from jetprep.core.models.config import RunConfig
from jetprep.core.services.converge import (
    cuda_link,
    jetson_stats,
    packages,
    profile_env,
    swap,
    updates,
    vscode,
)
from jetprep.core.services.detection.files import file_size_gb, read_lines


# ── Swap ────────────────────────────────────────────────────────────


class TestSwap:
    def test_absent_creates_and_registers(self, config, backend, runner):
        outcome = swap.ensure(config, runner)

        path = str(config.swap_path)
        assert outcome.status == "changed"
        assert backend.commands == [
            f"fallocate -l 2G {path}",
            f"chmod 600 {path}",
            f"mkswap {path}",
            f"swapon {path}",
            f"tee -a {config.fstab_path}",
        ]
        assert read_lines(config.fstab_path) == [f"{path} swap swap defaults 0 0"]
        assert file_size_gb(config.swap_path) == 2

    def test_too_small_is_removed_before_allocating(self, config, backend, runner, sparse_file):
        sparse_file(config.swap_path, 1)
        config.fstab_path.write_text(config.fstab_entry + "\n")

        outcome = swap.ensure(config, runner)

        assert outcome.status == "changed"
        assert outcome.observed == 1
        commands = backend.commands
        assert commands[:2] == ["swapoff -a", f"rm -f {config.swap_path}"]
        assert commands.index(f"rm -f {config.swap_path}") < commands.index(
            f"fallocate -l 2G {config.swap_path}"
        )
        assert file_size_gb(config.swap_path) == 2
        # Already mounted there: no second fstab line
        assert read_lines(config.fstab_path) == [config.fstab_entry]

    def test_large_enough_is_left_alone(self, config, backend, runner, announced, sparse_file):
        sparse_file(config.swap_path, 3)
        outcome = swap.ensure(config, runner)
        assert outcome.status == "satisfied"
        assert backend.call_count == 0
        assert file_size_gb(config.swap_path) == 3
        assert any("no change needed" in line for line in announced)

    def test_never_shrinks(self, make_config, backend, runner, sparse_file):
        config = make_config(swap_size_gb=1)
        sparse_file(config.swap_path, 4)
        assert swap.ensure(config, runner).status == "satisfied"
        assert file_size_gb(config.swap_path) == 4

    def test_disabled(self, make_config, backend, runner):
        outcome = swap.ensure(make_config(manage_swap=False), runner)
        assert outcome.status == "skipped"
        assert backend.call_count == 0

    def test_fstab_other_entries_kept(self, config, backend, runner):
        config.fstab_path.write_text("UUID=abc / ext4 defaults 0 1\n")
        swap.ensure(config, runner)
        assert read_lines(config.fstab_path) == [
            "UUID=abc / ext4 defaults 0 1",
            config.fstab_entry,
        ]

    def test_failure_stops_swap_sequence(self, config, backend, runner):
        backend.set_failure("mkswap")
        with pytest.raises(ActionError):
            swap.ensure(config, runner)
        assert not any(c.startswith("swapon") for c in backend.commands)

    def test_sudo(self, make_config, backend, dry_runner, announced):
        swap.ensure(make_config(use_sudo=True), dry_runner)
        assert announced[-1].startswith("DRY-RUN: sudo tee -a ")


# ── System update ───────────────────────────────────────────────────


class TestUpdates:
    def test_runs_all_steps_in_order(self, config, backend, runner):
        outcome = updates.ensure(config, runner)
        assert outcome.status == "changed"
        assert backend.commands == [
            "apt update",
            "apt upgrade -y -o Dpkg::Options::=--force-confold",
            "apt autoremove -y",
            "apt autoclean",
        ]

    def test_disabled(self, make_config, backend, runner):
        assert updates.ensure(make_config(update_system=False), runner).status == "skipped"
        assert backend.call_count == 0


# ── Packages ────────────────────────────────────────────────────────


class TestPackages:
    def test_missing_subset_installed_in_one_batch(self, make_config, host, backend, runner, announced):
        config = make_config(required_packages=["git", "curl", "cmake", "nano", "ccache", "gcc-8"])
        host.packages.update({"git", "curl", "nano", "ccache"})

        outcome = packages.ensure(config, runner)

        assert outcome.status == "changed"
        assert backend.commands == ["apt-get install -y cmake gcc-8"]
        assert "[WARN] - cmake: NOT installed" in announced
        assert "[INFO] - git: already installed" in announced

    def test_all_present(self, make_config, host, backend, runner, announced):
        config = make_config(required_packages=["git"])
        host.packages.add("git")
        assert packages.ensure(config, runner).status == "satisfied"
        assert backend.call_count == 0
        assert "[INFO] All required packages are already installed." in announced

    def test_probe_is_per_package(self, config, host):
        host.packages.update(config.required_packages[:3])
        result = packages.probe(config)
        assert result.observed["missing"] == config.required_packages[3:]


# ── jetson-stats ────────────────────────────────────────────────────


class TestJetsonStats:
    def test_installs_with_home_preserving_sudo(self, make_config, backend, dry_runner, announced):
        jetson_stats.ensure(make_config(use_sudo=True), dry_runner)
        assert "DRY-RUN: sudo -H pip3 install -U jetson-stats" in announced

    def test_jtop_on_path_is_enough(self, config, host, backend, runner):
        host.commands.add("jtop")
        assert jetson_stats.ensure(config, runner).status == "satisfied"
        assert backend.call_count == 0

    def test_disabled(self, make_config, backend, runner):
        outcome = jetson_stats.ensure(make_config(install_jetson_stats=False), runner)
        assert outcome.status == "skipped"


# ── VS Code ─────────────────────────────────────────────────────────


class TestVscode:
    def test_launcher_on_path_skips_install(self, config, host, backend, runner):
        host.commands.add("code")
        outcome = vscode.ensure(config, runner)
        assert outcome.status == "satisfied"
        assert outcome.observed == "launcher on PATH"
        assert backend.call_count == 0

    def test_snap_counts(self, config, host, backend, runner):
        host.snaps.add("code")
        assert vscode.ensure(config, runner).status == "satisfied"

    def test_download_then_install(self, config, host, backend, runner):
        outcome = vscode.ensure(config, runner)
        deb = config.vscode_deb_path
        assert outcome.status == "changed"
        assert backend.commands == [
            f"wget -N -O {deb} https://update.code.visualstudio.com/1.85.2/linux-deb-arm64/stable",
            f"apt install -y {deb}",
        ]

    def test_latest_version(self, make_config, host, backend, runner):
        vscode.ensure(make_config(vscode_version="latest"), runner)
        assert backend.commands[0].endswith("/latest/linux-deb-arm64/stable")

    def test_download_failure_skips_install(self, config, host, backend, runner):
        backend.set_failure("wget", error="404 Not Found", return_code=8)
        with pytest.raises(ActionError):
            vscode.ensure(config, runner)
        assert backend.call_count == 1

    def test_disabled(self, make_config, host, backend, runner):
        assert vscode.ensure(make_config(install_vscode=False), runner).status == "skipped"
        assert backend.call_count == 0


# ── CUDA symlink ────────────────────────────────────────────────────


class TestCudaLink:
    def test_creates_link(self, config, backend, runner):
        config.cuda_source.mkdir()
        outcome = cuda_link.ensure(config, runner)
        assert outcome.status == "changed"
        assert os.readlink(config.cuda_link) == str(config.cuda_source)

    def test_existing_path_never_replaced(self, config, backend, runner):
        config.cuda_source.mkdir()
        other = config.cuda_prefix / "cuda-11.4"
        other.mkdir()
        config.cuda_link.symlink_to(other)

        assert cuda_link.ensure(config, runner).status == "satisfied"
        assert os.readlink(config.cuda_link) == str(other)
        assert backend.call_count == 0

    def test_dangling_link_counts_as_present(self, config, backend, runner):
        config.cuda_link.symlink_to(config.cuda_prefix / "gone")
        assert cuda_link.ensure(config, runner).status == "satisfied"

    def test_missing_source(self, config, backend, runner):
        with pytest.raises(NotFoundError, match="not installed"):
            cuda_link.ensure(config, runner)
        assert backend.call_count == 0


# ── Shell profile ───────────────────────────────────────────────────


class TestProfileEnv:
    def test_appends_all_lines(self, config, backend, runner):
        outcome = profile_env.ensure(config, runner)
        assert outcome.status == "changed"
        assert read_lines(config.profile_path) == config.env_lines
        assert outcome.observed == []
        assert "source" in outcome.reason

    def test_only_missing_appended(self, config, backend, runner):
        config.profile_path.write_text(f"alias ll='ls -l'\n{config.env_lines[0]}\n")
        profile_env.ensure(config, runner)
        assert read_lines(config.profile_path) == ["alias ll='ls -l'", *config.env_lines]

    def test_near_miss_lines_still_appended(self, config, backend, runner):
        first = config.env_lines[0]
        config.profile_path.write_text(f"{first} \n{first.upper()}\n")
        profile_env.ensure(config, runner)
        lines = read_lines(config.profile_path)
        assert lines.count(first) == 1
        assert lines[:2] == [f"{first} ", first.upper()]

    def test_unterminated_last_line_not_joined(self, config, backend, runner):
        config.profile_path.write_text("alias ll='ls -l'")
        profile_env.ensure(config, runner)
        assert read_lines(config.profile_path) == ["alias ll='ls -l'", *config.env_lines]

    def test_satisfied(self, config, backend, runner):
        config.profile_path.write_text("\n".join(config.env_lines) + "\n")
        assert profile_env.ensure(config, runner).status == "satisfied"
        assert backend.call_count == 0

    def test_default_profile_is_under_home(self, tmp_path, monkeypatch, backend, runner):
        home = tmp_path / "home"
        home.mkdir()
        monkeypatch.setenv("HOME", str(home))
        config = RunConfig(use_sudo=False)
        (home / ".bashrc").write_text("\n".join(config.env_lines) + "\n")

        assert config.profile_path == home / ".bashrc"
        assert profile_env.ensure(config, runner).status == "satisfied"
        assert backend.call_count == 0

    def test_default_profile_appended_in_place(self, tmp_path, monkeypatch, backend, runner):
        home = tmp_path / "home"
        home.mkdir()
        monkeypatch.setenv("HOME", str(home))
        config = RunConfig(use_sudo=False)

        assert profile_env.ensure(config, runner).status == "changed"
        assert backend.commands == [f"tee -a {home / '.bashrc'}"] * 3
        assert read_lines(home / ".bashrc") == config.env_lines

    def test_append_that_does_not_land_fails(self, config, host, runner):
        runner.backend.reset()  # no effects: tee "succeeds" but writes nothing
        outcome = profile_env.ensure(config, runner)
        assert outcome.status == "failed"
        assert "still lacks" in outcome.reason

    def test_env_lines(self, config):
        link = config.cuda_link
        assert config.env_lines == [
            f"export CUDA_HOME={link}",
            f"export LD_LIBRARY_PATH=$LD_LIBRARY_PATH:{link}/lib64",
            f"export PATH=$PATH:{link}/bin",
        ]


# ── Whole sequence ──────────────────────────────────────────────────


@pytest.fixture
def full_config(make_config):
    config = make_config(update_system=False)
    config.cuda_source.mkdir()
    return config


class TestIdempotence:
    def test_second_run_changes_nothing(self, full_config, host, backend):
        first = converge(full_config, ActionRunner(backend, announce=lambda _: None))
        assert first.all_ok
        assert first.changed == 6
        calls_after_first = backend.call_count

        second = converge(full_config, ActionRunner(backend, announce=lambda _: None))
        assert backend.call_count == calls_after_first
        assert [o.status for o in second.outcomes] == [
            "satisfied", "skipped", "satisfied", "satisfied",
            "satisfied", "satisfied", "satisfied",
        ]

    def test_profile_lines_appear_once(self, full_config, host, backend):
        for _ in range(3):
            converge(full_config, ActionRunner(backend, announce=lambda _: None))
        lines = read_lines(full_config.profile_path)
        for line in full_config.env_lines:
            assert lines.count(line) == 1
        assert read_lines(full_config.fstab_path).count(full_config.fstab_entry) == 1

    def test_update_phase_reruns(self, make_config, host, backend):
        config = make_config(manage_swap=False, required_packages=["git"],
                             install_jetson_stats=False, install_vscode=False)
        host.packages.add("git")
        for _ in range(2):
            converge(config, ActionRunner(backend, announce=lambda _: None))
        assert backend.commands.count("apt update") == 2


class TestDryRun:
    def test_no_side_effects(self, full_config, host, backend, dry_runner, announced):
        report = converge(full_config, dry_runner)

        assert backend.call_count == 0
        assert not full_config.swap_path.exists()
        assert not full_config.fstab_path.exists()
        assert not full_config.profile_path.exists()
        assert not os.path.lexists(full_config.cuda_link)
        assert not host.packages
        assert report.dry_run
        assert report.all_ok

    def test_announces_every_command(self, full_config, host, dry_runner, announced):
        converge(full_config, dry_runner)
        dry = [line for line in announced if line.startswith("DRY-RUN: ")]
        assert dry[0] == f"DRY-RUN: fallocate -l 2G {full_config.swap_path}"
        assert any(line.startswith("DRY-RUN: apt-get install -y cuda-nvcc-10-2") for line in dry)
        assert not any(line.startswith("+ ") for line in announced)

    def test_outcomes_flagged(self, full_config, host, dry_runner):
        report = converge(full_config, dry_runner)
        swap_outcome = report.get("swap")
        assert swap_outcome.status == "changed"
        assert swap_outcome.dry_run
        assert all(r.status == "skipped" for r in swap_outcome.receipts)

    def test_gated_ops_reflect_current_state(self, full_config, host, dry_runner):
        # Nothing was really installed, so the toolchain is still absent
        report = converge(full_config, dry_runner)
        assert report.get("cuda-symlink").status == "skipped"
        assert report.get("shell-profile").status == "skipped"

    def test_profile_would_append(self, full_config, host, dry_runner):
        host.packages.add("cuda-nvcc-10-2")
        report = converge(full_config, dry_runner)
        outcome = report.get("shell-profile")
        assert outcome.status == "changed"
        assert outcome.reason == "would append 3 line(s)"
