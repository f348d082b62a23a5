from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Mapping, Optional, Tuple

from .errors import StagingError
from .lib.command import CmdResult, run_cmd
from .lib.staging import stage_package, staging_directory

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_SUCCESS_REBOOT_REQUIRED = 3010

LOG_NAME_PREFIX = "tcp-enabler-"


class OutcomeStatus(enum.Enum):
    SUCCESS = "success"
    SUCCESS_REBOOT_REQUIRED = "success_reboot_required"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallationOutcome:
    status: OutcomeStatus
    returncode: int
    log_path: Optional[str]

    @property
    def succeeded(self) -> bool:
        return self.status is not OutcomeStatus.FAILED

    @property
    def reboot_required(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS_REBOOT_REQUIRED


@dataclass(frozen=True)
class InstallationPlan:
    staged_package_path: str
    log_path: str
    add_local: Tuple[str, ...]
    remove: Tuple[str, ...]


def partition_features(target: Mapping[str, bool]) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """Split a target feature mapping into (ADDLOCAL, REMOVE) lists."""
    add_local = tuple(name for name, enabled in target.items() if enabled)
    remove = tuple(name for name, enabled in target.items() if not enabled)
    return add_local, remove


def classify_exit_code(returncode: int, log_path: Optional[str]) -> InstallationOutcome:
    if returncode == EXIT_SUCCESS:
        status = OutcomeStatus.SUCCESS
    elif returncode == EXIT_SUCCESS_REBOOT_REQUIRED:
        status = OutcomeStatus.SUCCESS_REBOOT_REQUIRED
    else:
        status = OutcomeStatus.FAILED
    return InstallationOutcome(status=status, returncode=returncode, log_path=log_path)


def build_msiexec_argv(msiexec: str, plan: InstallationPlan) -> List[str]:
    argv = [
        msiexec,
        "/i",
        plan.staged_package_path,
        "/qn",
        "/norestart",
        "/l*v",
        plan.log_path,
    ]
    if plan.add_local:
        argv.append("ADDLOCAL=" + ",".join(plan.add_local))
    if plan.remove:
        argv.append("REMOVE=" + ",".join(plan.remove))
    return argv


class InstallationOrchestrator:
    """Stages the package and runs one unattended msiexec transaction."""

    def __init__(
        self,
        *,
        log_dir: str,
        msiexec: str = "msiexec.exe",
        dry_run: bool = False,
        runner: Callable[..., CmdResult] = run_cmd,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.log_dir = log_dir
        self.msiexec = msiexec
        self.dry_run = dry_run
        self.runner = runner
        self.clock = clock

    def new_log_path(self) -> str:
        stamp = self.clock().strftime("%Y%m%dT%H%M%S-%f")
        return str(Path(self.log_dir) / f"{LOG_NAME_PREFIX}{stamp}.log")

    def execute(
        self,
        package_path: str,
        package_file_name_hint: str,
        target_features: Mapping[str, bool],
    ) -> InstallationOutcome:
        try:
            Path(self.log_dir).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StagingError(f"Could not create log directory {self.log_dir}: {e}") from e

        with staging_directory() as workdir:
            try:
                staged = stage_package(package_path, workdir, package_file_name_hint)
            except (OSError, ValueError) as e:
                raise StagingError(f"Could not stage {package_path}: {e}") from e
            add_local, remove = partition_features(target_features)
            plan = InstallationPlan(
                staged_package_path=str(staged),
                log_path=self.new_log_path(),
                add_local=add_local,
                remove=remove,
            )
            logger.info(
                "Invoking installer (ADDLOCAL=%s REMOVE=%s)",
                ",".join(plan.add_local) or "-",
                ",".join(plan.remove) or "-",
            )

            # Blocks until msiexec exits; ProcessLaunchError propagates.
            result = self.runner(
                build_msiexec_argv(self.msiexec, plan),
                cwd=str(workdir),
                dry_run=self.dry_run,
            )

        outcome = classify_exit_code(result.returncode, plan.log_path)
        logger.info("Installer exited with %d (%s)", outcome.returncode, outcome.status.value)
        return outcome
