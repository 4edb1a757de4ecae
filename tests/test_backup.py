"""
Tests for BackupGuard and backup root naming.
"""

from __future__ import annotations

import os
import shutil
from datetime import datetime
from pathlib import Path

import pytest

from workstation_installer.backup import BACKUP_PREFIX, BackupGuard, mirrored_path, new_backup_root
from workstation_installer.errors import BackupFailed


class TestBackupRoot:
    def test_timestamped_name(self, tmp_path):
        root = new_backup_root(str(tmp_path), now=datetime(2026, 1, 2, 3, 4, 5))
        assert root == str(tmp_path / f"{BACKUP_PREFIX}20260102-030405")

    def test_existing_root_is_never_reused(self, tmp_path):
        now = datetime(2026, 1, 2, 3, 4, 5)
        first = new_backup_root(str(tmp_path), now=now)
        Path(first).mkdir()
        second = new_backup_root(str(tmp_path), now=now)
        assert second != first
        assert second.startswith(first)

    def test_mirrored_path(self):
        assert mirrored_path("/b", "/etc/hosts") == Path("/b/etc/hosts")


class TestSnapshot:
    def test_file_copy_preserves_content_and_mode(self, tmp_path):
        src = tmp_path / "etc" / "hosts"
        src.parent.mkdir()
        src.write_text("127.0.0.1 localhost\n")
        os.chmod(src, 0o640)
        guard = BackupGuard(str(tmp_path / "bk"))

        backup = guard.snapshot(str(src))

        copy = Path(backup.backup_path)
        assert copy.read_text() == "127.0.0.1 localhost\n"
        assert (copy.stat().st_mode & 0o777) == 0o640
        assert backup.source_path == str(src)
        assert backup.created_at > 0

    def test_directory_copy(self, tmp_path):
        src = tmp_path / "conf.d"
        (src / "sub").mkdir(parents=True)
        (src / "sub" / "a.conf").write_text("a")
        guard = BackupGuard(str(tmp_path / "bk"))

        backup = guard.snapshot(str(src))

        assert (Path(backup.backup_path) / "sub" / "a.conf").read_text() == "a"

    def test_missing_target_is_a_noop(self, tmp_path):
        guard = BackupGuard(str(tmp_path / "bk"))
        assert guard.snapshot(str(tmp_path / "absent")) is None
        assert guard.backups == []
        assert not (tmp_path / "bk").exists()

    def test_second_snapshot_keeps_pre_run_copy(self, tmp_path):
        src = tmp_path / ".bashrc"
        src.write_text("v1\n")
        guard = BackupGuard(str(tmp_path / "bk"))

        first = guard.snapshot(str(src))
        src.write_text("v2\n")
        second = guard.snapshot(str(src))

        assert second is first
        assert Path(first.backup_path).read_text() == "v1\n"
        assert len(guard.backups) == 1

    def test_directory_after_file_keeps_earlier_copy(self, tmp_path):
        home = tmp_path / "home"
        home.mkdir()
        (home / ".bashrc").write_text("v1\n")
        (home / ".profile").write_text("p\n")
        guard = BackupGuard(str(tmp_path / "bk"))

        guard.snapshot(str(home / ".bashrc"))
        (home / ".bashrc").write_text("v2\n")
        dir_backup = guard.snapshot(str(home))

        mirrored = Path(dir_backup.backup_path)
        assert (mirrored / ".bashrc").read_text() == "v1\n"
        assert (mirrored / ".profile").read_text() == "p\n"
        assert len(guard.backups) == 2

    def test_separate_runs_accumulate(self, tmp_path):
        src = tmp_path / ".bashrc"
        src.write_text("v1\n")
        BackupGuard(str(tmp_path / "run1")).snapshot(str(src))
        src.write_text("v2\n")
        BackupGuard(str(tmp_path / "run2")).snapshot(str(src))

        assert (tmp_path / "run1" / str(src).lstrip("/")).read_text() == "v1\n"
        assert (tmp_path / "run2" / str(src).lstrip("/")).read_text() == "v2\n"

    def test_copy_error_raises_backup_failed(self, tmp_path, monkeypatch):
        src = tmp_path / "hosts"
        src.write_text("x")

        def denied(*args, **kwargs):
            raise PermissionError("denied")

        monkeypatch.setattr(shutil, "copy2", denied)
        guard = BackupGuard(str(tmp_path / "bk"))

        with pytest.raises(BackupFailed) as exc:
            guard.snapshot(str(src))
        assert str(src) in str(exc.value)
        assert guard.backups == []
