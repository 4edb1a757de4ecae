from __future__ import annotations

import argparse
import logging
from typing import Optional

from .backup import new_backup_root
from .config import WorkstationConfig, load_config
from .context import open_run_context
from .errors import EXIT_FAILURE, EXIT_OK, EXIT_PRECONDITION, FatalPrecondition
from .lock import acquire_lock, release_lock
from .logging_utils import configure_logging, log_success
from .pipeline import PipelineResult, run_pipeline
from .preflight import check_root, check_step_names, run_preflight
from .probe import StateProbe
from .retry import RetryExecutor
from .rollback import list_backups, restore_backup
from .run_report import build_report, save_report
from .step_runner import StepRunner
from .steps import build_steps, verification_checks
from .verification import Report, VerificationPass

logger = logging.getLogger(__name__)


def _report_fatal(e: FatalPrecondition) -> None:
    logger.error("%s", e)
    if e.hint:
        logger.error("hint: %s", e.hint)


def _log_summary(
    pipeline: Optional[PipelineResult],
    verification: Optional[Report],
    *,
    log_path: str,
    backup_root: str,
    backups_taken: int,
) -> None:
    if pipeline is not None:
        logger.info(
            "Steps: %d configured, %d already in place, %d failed",
            len(pipeline.ran_steps),
            len(pipeline.skipped_steps),
            len(pipeline.failed_steps),
        )
        for name in pipeline.failed_steps:
            logger.error("Failed step: %s", name)
    if verification is not None:
        logger.info("Verification: %s", verification.summary)
    logger.info("Log file: %s", log_path)
    if backups_taken:
        logger.info("Backups (%d) in: %s", backups_taken, backup_root)


def run(
    config: WorkstationConfig,
    *,
    log_path: str,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    dry_run: bool = False,
) -> int:
    """Provision this host. Returns the process exit code."""

    pipeline: Optional[PipelineResult] = None
    verification: Optional[Report] = None
    error: Optional[str] = None
    backups_taken = 0
    backup_root = new_backup_root(config.backup_parent)

    logger.info("Components: %s", ", ".join(config.enabled_components))
    if dry_run:
        logger.info("Dry run: probing only, nothing will be changed")

    try:
        steps = build_steps(config)
        check_step_names(steps, start_at=start_at, stop_after=stop_after)
        check_root()
        with open_run_context(
            lock_file=config.lock_file,
            progress_file=config.progress_file,
            backup_root=backup_root,
            log_path=log_path,
        ) as ctx:
            run_preflight(config)

            probe = StateProbe(timeout_s=config.command_timeout_s)
            runner = StepRunner(
                probe=probe,
                executor=RetryExecutor(),
                backups=ctx.backups,
                ledger=ctx.ledger,
                dry_run=dry_run,
            )
            try:
                pipeline = run_pipeline(
                    runner=runner,
                    steps=steps,
                    start_at=start_at,
                    stop_after=stop_after,
                )
            finally:
                backups_taken = len(ctx.backups.backups)
            verification = VerificationPass(probe).verify_all(verification_checks(config))

        exit_code = EXIT_OK if pipeline.ok else EXIT_FAILURE
    except FatalPrecondition as e:
        _report_fatal(e)
        error = str(e)
        exit_code = e.exit_code
    except Exception as e:
        logger.exception("Installer failed")
        error = str(e)
        exit_code = EXIT_FAILURE

    try:
        save_report(
            config.report_file,
            build_report(
                pipeline=pipeline,
                verification=verification,
                exit_code=exit_code,
                log_path=log_path,
                backup_root=backup_root if backups_taken else None,
                dry_run=dry_run,
                error=error,
            ),
        )
    except OSError as e:
        logger.warning("Could not write run report %s: %s", config.report_file, e)

    _log_summary(pipeline, verification, log_path=log_path, backup_root=backup_root, backups_taken=backups_taken)
    if exit_code == EXIT_OK:
        log_success(logger, "Workstation setup finished")
    return exit_code


def verify(config: WorkstationConfig) -> int:
    report = VerificationPass(StateProbe(timeout_s=config.command_timeout_s)).verify_all(
        verification_checks(config)
    )
    return EXIT_OK if report.ok else EXIT_FAILURE


def show_backups(config: WorkstationConfig) -> int:
    roots = list_backups(config.backup_parent)
    if not roots:
        print(f"No backups under {config.backup_parent}")
        return EXIT_OK
    for r in roots:
        print(f"{r.path}\t{r.files} files\t{r.size_bytes / 1024:.1f} KiB")
    return EXIT_OK


def restore(config: WorkstationConfig, backup_dir: str) -> int:
    try:
        check_root()
        token = acquire_lock(config.lock_file)
    except FatalPrecondition as e:
        _report_fatal(e)
        return e.exit_code

    try:
        result = restore_backup(backup_dir, backup_parent=config.backup_parent)
    except FileNotFoundError:
        logger.error("Backup directory not found: %s", backup_dir)
        return EXIT_FAILURE
    finally:
        release_lock(token)
    return EXIT_OK if not result.failed else EXIT_FAILURE


def main(argv: Optional[list[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="workstation-installer")
    p.add_argument("--config", default=None, help="Path to workstation config (yaml)")
    p.add_argument("--log", default=None, help="Path to installer log (default: paths.log_file)")
    p.add_argument("--dry-run", action="store_true", help="Probe and report, change nothing")
    p.add_argument("--start-at", default=None, help="Start at step name (e.g. docker:repository)")
    p.add_argument("--stop-after", default=None, help="Stop after step name")

    sub = p.add_subparsers(dest="command")
    sub.add_parser("run", help="Provision the workstation (default)")
    sub.add_parser("verify", help="Check the installed components, change nothing")
    sub.add_parser("backups", help="List backup directories")
    rp = sub.add_parser("restore", help="Restore files from a backup directory")
    rp.add_argument("backup_dir")

    args = p.parse_args(argv)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        configure_logging(log_path=args.log or WorkstationConfig(raw={}).log_file)
        logger.error("Invalid configuration: %s", e)
        return EXIT_PRECONDITION

    log_path = configure_logging(log_path=args.log or config.log_file)
    command = args.command or "run"

    if command == "verify":
        return verify(config)
    if command == "backups":
        return show_backups(config)
    if command == "restore":
        return restore(config, args.backup_dir)
    return run(
        config,
        log_path=log_path,
        start_at=args.start_at,
        stop_after=args.stop_after,
        dry_run=args.dry_run or config.dry_run,
    )


if __name__ == "__main__":
    raise SystemExit(main())
