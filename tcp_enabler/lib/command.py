from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Sequence

from ..errors import ProcessLaunchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


def fmt_argv(argv: Sequence[str]) -> str:
    # Windows quoting rules, since the only command we launch is msiexec.
    return subprocess.list2cmdline(list(argv))


def run_cmd(
    argv: Sequence[str],
    *,
    cwd: str | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Run a command synchronously with consistent logging.

    - Always logs the command.
    - No timeout: the call blocks until the process exits.
    - The exit code is returned, never raised on; callers classify it.
    - A process that cannot be started raises ProcessLaunchError.
    - dry_run logs but does not execute.
    """

    argv_list = list(argv)
    logger.info("CMD %s", fmt_argv(argv_list))

    if dry_run:
        return CmdResult(argv=argv_list, returncode=0, stdout="", stderr="")

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        raise ProcessLaunchError(f"Could not launch {argv_list[0]}: {e}") from e

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)
