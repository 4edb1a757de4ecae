"""
Tests for StepRunner: probe -> (skip | backup -> act -> verify) -> record.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from workstation_installer import resources
from workstation_installer.lib.dotfiles import append_block
from workstation_installer.probe import StateProbe
from workstation_installer.resources import ActionTaken, ProbeStatus
from workstation_installer.retry import RetryPolicy
from workstation_installer.step_runner import Step


class Recorder:
    """Action that counts calls and optionally fails the first N."""

    def __init__(self, effect=None, failures: int = 0) -> None:
        self.calls = 0
        self.effect = effect
        self.failures = failures

    def __call__(self) -> None:
        self.calls += 1
        if self.calls <= self.failures:
            raise RuntimeError("transient failure")
        if self.effect:
            self.effect()


# ── Scenarios ────────────────────────────────────────────────────────


class TestScenarios:
    def test_satisfied_package_is_skipped(self, runner, world, backup_root, ledger):
        world.add("package:curl")
        action = Recorder()
        step = Step(name="system:curl", resource=resources.package("curl"), action=action)

        result = runner.run(step)

        assert result.action_taken == ActionTaken.SKIPPED
        assert action.calls == 0
        assert result.attempts == 0
        assert not backup_root.exists()
        assert ledger.read() == "system:curl"

    def test_marker_block_inserted_with_one_backup(self, make_runner, tmp_path, backup_root):
        bashrc = tmp_path / "home" / ".bashrc"
        bashrc.parent.mkdir()
        original = "export PATH=$PATH:/opt/bin\n"
        bashrc.write_text(original)
        marker = "# Aliases - Added by test"

        step = Step(
            name="shell:aliases",
            resource=resources.file_marker("bashrc-block", str(bashrc), marker),
            action=lambda: append_block(str(bashrc), marker, "alias ll='ls -l'"),
            backup_paths=(str(bashrc),),
        )
        runner = make_runner(StateProbe())
        result = runner.run(step)

        assert result.action_taken == ActionTaken.EXECUTED
        assert result.attempts == 1
        assert marker in bashrc.read_text()

        backups = runner.backups.backups
        assert len(backups) == 1
        copy = Path(backups[0].backup_path)
        assert copy == backup_root / str(bashrc).lstrip("/")
        assert copy.read_text() == original

    def test_flaky_action_succeeds_on_third_attempt(self, runner, world, sleeps):
        res = resources.package("docker-ce")
        action = Recorder(effect=lambda: world.add(res.ref), failures=2)
        step = Step(name="docker:docker-ce", resource=res, action=action, policy=RetryPolicy(3, 10))

        result = runner.run(step)

        assert result.action_taken == ActionTaken.EXECUTED
        assert result.attempts == 3
        assert action.calls == 3
        assert sleeps == [10, 10]

    def test_backup_failure_leaves_target_untouched(self, make_runner, tmp_path, monkeypatch):
        target = tmp_path / ".bashrc"
        target.write_bytes(b"original\x00bytes\n")
        marker = "# block"

        def denied(*args, **kwargs):
            raise PermissionError("read-only backup root")

        monkeypatch.setattr(shutil, "copy2", denied)
        action = Recorder(effect=lambda: append_block(str(target), marker, "x=1"))
        step = Step(
            name="shell:block",
            resource=resources.file_marker("bashrc-block", str(target), marker),
            action=action,
            backup_paths=(str(target),),
        )

        result = make_runner(StateProbe()).run(step)

        assert result.action_taken == ActionTaken.FAILED
        assert result.error_type == "BackupFailed"
        assert action.calls == 0
        assert target.read_bytes() == b"original\x00bytes\n"


# ── Properties ───────────────────────────────────────────────────────


class TestIdempotency:
    def test_second_run_executes_nothing(self, runner, world):
        actions = {}
        steps = []
        for name in ("git", "vim", "htop"):
            res = resources.package(name)
            actions[name] = Recorder(effect=lambda ref=res.ref: world.add(ref))
            steps.append(Step(name=f"system:{name}", resource=res, action=actions[name]))

        first = [runner.run(s).action_taken for s in steps]
        second = [runner.run(s).action_taken for s in steps]

        assert first == [ActionTaken.EXECUTED] * 3
        assert second == [ActionTaken.SKIPPED] * 3
        assert all(a.calls == 1 for a in actions.values())

    def test_backup_taken_before_mutation(self, make_runner, tmp_path):
        target = tmp_path / "hosts"
        target.write_text("127.0.0.1 localhost\n")
        runner = make_runner(StateProbe())
        seen = {}

        def mutate():
            seen["backups_before_action"] = list(runner.backups.backups)
            append_block(str(target), "# m", "10.0.0.1 box")

        runner.run(
            Step(
                name="hosts",
                resource=resources.file_marker("hosts", str(target), "# m"),
                action=mutate,
                backup_paths=(str(target),),
            )
        )
        assert len(seen["backups_before_action"]) == 1
        assert Path(seen["backups_before_action"][0].backup_path).read_text() == "127.0.0.1 localhost\n"

    def test_ledger_holds_last_attempted_step(self, runner, world, ledger):
        for name in ("a", "b", "c"):
            world.add(f"package:{name}")
            runner.run(Step(name=f"step-{name}", resource=resources.package(name), action=Recorder()))
            assert ledger.read() == f"step-{name}"


# ── Failure classes ──────────────────────────────────────────────────


class TestFailures:
    def test_exhausted(self, runner, sleeps):
        action = Recorder(failures=99)
        step = Step(name="pkg", resource=resources.package("x"), action=action, policy=RetryPolicy(3, 1))

        result = runner.run(step)

        assert result.action_taken == ActionTaken.FAILED
        assert result.error_type == "ActionExhausted"
        assert result.attempts == 3
        assert action.calls == 3
        assert "transient failure" in result.error

    def test_verification_failed(self, runner):
        step = Step(name="pkg", resource=resources.package("ghost"), action=Recorder())
        result = runner.run(step)
        assert result.action_taken == ActionTaken.FAILED
        assert result.error_type == "VerificationFailed"
        assert result.attempts == 1

    def test_missing_tool_is_precondition_missing(self, make_runner, fake_probe, tmp_path):
        runner = make_runner(fake_probe)
        runner._which = lambda tool: None if tool == "visudo" else f"/usr/bin/{tool}"
        target = tmp_path / "sudoers"
        target.write_text("x\n")
        action = Recorder()
        step = Step(
            name="user:sudoers",
            resource=resources.path("sudoers", str(target / "missing")),
            action=action,
            backup_paths=(str(target),),
            requires=("visudo",),
        )

        result = runner.run(step)

        assert result.error_type == "PreconditionMissing"
        assert "visudo" in result.error
        assert action.calls == 0
        assert runner.backups.backups == []

    def test_unknown_probe_is_treated_as_unsatisfied(self, runner, world):
        res = resources.package("curl")
        action = Recorder(effect=lambda: world.add(res.ref))
        probe_calls = []

        def probe():
            probe_calls.append(1)
            return ProbeStatus.UNKNOWN if len(probe_calls) == 1 else ProbeStatus.SATISFIED

        result = runner.run(Step(name="s", resource=res, action=action, probe=probe))
        assert result.action_taken == ActionTaken.EXECUTED
        assert action.calls == 1


class TestDryRun:
    def test_unsatisfied_step_is_planned(self, make_runner, fake_probe, backup_root):
        runner = make_runner(fake_probe, dry_run=True)
        action = Recorder()
        result = runner.run(
            Step(name="s", resource=resources.package("x"), action=action, backup_paths=(str(backup_root),))
        )
        assert result.action_taken == ActionTaken.PLANNED
        assert action.calls == 0
        assert runner.backups.backups == []

    def test_satisfied_step_still_skipped(self, make_runner, fake_probe, world):
        world.add("package:x")
        result = make_runner(fake_probe, dry_run=True).run(
            Step(name="s", resource=resources.package("x"), action=Recorder())
        )
        assert result.action_taken == ActionTaken.SKIPPED


def test_results_are_collected_in_order(runner, world):
    world.add("package:a")
    runner.run(Step(name="one", resource=resources.package("a"), action=Recorder()))
    runner.run(Step(name="two", resource=resources.package("b"), action=Recorder()))
    assert [r.name for r in runner.results] == ["one", "two"]
    assert runner.results[1].ok is False
    assert runner.results[0].duration >= 0
