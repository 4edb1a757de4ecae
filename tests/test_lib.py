"""
Tests for the lib helpers: command runner, dotfiles, apt sources, host info.
"""

from __future__ import annotations

import logging
import sys

import pytest

from workstation_installer.lib import apt_repo, hostinfo
from workstation_installer.lib.command import CmdResult, as_user, run_cmd
from workstation_installer.lib.dotfiles import append_block, has_marker


# ── Command runner ───────────────────────────────────────────────────


class TestRunCmd:
    def test_captures_output(self):
        r = run_cmd([sys.executable, "-c", "print('hi')"])
        assert r.returncode == 0
        assert r.stdout.strip() == "hi"

    def test_failure_raises(self):
        with pytest.raises(RuntimeError) as exc:
            run_cmd([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert "(3)" in str(exc.value)

    def test_check_false_returns_code(self):
        r = run_cmd([sys.executable, "-c", "import sys; sys.exit(3)"], check=False)
        assert r.returncode == 3

    def test_dry_run_does_not_execute(self, tmp_path):
        marker = tmp_path / "touched"
        r = run_cmd(["touch", str(marker)], dry_run=True)
        assert r.returncode == 0
        assert not marker.exists()

    def test_stdin_is_not_logged(self, caplog):
        caplog.set_level(logging.DEBUG)
        run_cmd([sys.executable, "-c", "import sys; sys.stdin.read()"], input_text="dev:S3cret!\n")
        assert "S3cret" not in caplog.text

    def test_missing_command(self):
        with pytest.raises(FileNotFoundError):
            run_cmd(["definitely-not-a-command-xyz"])

    def test_as_user(self):
        assert as_user("dev", ["bash", "x.sh"]) == ["sudo", "-H", "-u", "dev", "bash", "x.sh"]


# ── Dotfiles ─────────────────────────────────────────────────────────


class TestDotfiles:
    def test_append_then_noop(self, tmp_path):
        f = tmp_path / ".bashrc"
        f.write_text("export A=1")
        assert append_block(str(f), "# block", "alias x=y") is True
        after_first = f.read_text()
        assert append_block(str(f), "# block", "alias x=y") is False
        assert f.read_text() == after_first
        assert after_first == "export A=1\n\n# block\nalias x=y\n"

    def test_creates_missing_file(self, tmp_path):
        f = tmp_path / "new" / ".xsession"
        append_block(str(f), "# m", "xfce4-session")
        assert has_marker(str(f), "# m")

    def test_has_marker_missing_file(self, tmp_path):
        assert has_marker(str(tmp_path / "nope"), "# m") is False


# ── APT sources ──────────────────────────────────────────────────────


def test_render_deb822():
    text = apt_repo.render_deb822(
        uris="https://download.docker.com/linux/debian",
        suites="bookworm",
        components=["stable"],
        architectures="amd64",
        signed_by="/etc/apt/keyrings/docker.asc",
    )
    assert text.splitlines() == [
        "Types: deb",
        "URIs: https://download.docker.com/linux/debian",
        "Suites: bookworm",
        "Components: stable",
        "Architectures: amd64",
        "Signed-By: /etc/apt/keyrings/docker.asc",
    ]


# ── Host info ────────────────────────────────────────────────────────


class TestHostInfo:
    def test_debian_version_and_codename(self, tmp_path):
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "debian_version").write_text("13.1\n")
        (tmp_path / "etc" / "os-release").write_text('ID=debian\nVERSION_CODENAME="trixie"\n')
        assert hostinfo.debian_major(str(tmp_path)) == 13
        assert hostinfo.codename(str(tmp_path)) == "trixie"

    def test_testing_has_no_major(self, tmp_path):
        (tmp_path / "etc").mkdir()
        (tmp_path / "etc" / "debian_version").write_text("trixie/sid\n")
        assert hostinfo.debian_major(str(tmp_path)) is None

    def test_ram_mb(self, tmp_path):
        meminfo = tmp_path / "meminfo"
        meminfo.write_text("MemTotal:        2048000 kB\nMemFree: 1 kB\n")
        assert hostinfo.ram_mb(str(meminfo)) == 2000

    def test_is_online_tries_each_target(self, monkeypatch):
        tried = []

        def fake(argv, **kwargs):
            tried.append(argv[-1])
            return CmdResult(argv=list(argv), returncode=0 if argv[-1] == "1.1.1.1" else 1, stdout="", stderr="")

        monkeypatch.setattr(hostinfo, "run_cmd", fake)
        assert hostinfo.is_online() is True
        assert tried == ["8.8.8.8", "1.1.1.1"]
