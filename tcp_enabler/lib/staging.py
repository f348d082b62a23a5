from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Iterator

from ..errors import StagingError

logger = logging.getLogger(__name__)

WORKDIR_PREFIX = "tcp-enabler-"


@contextlib.contextmanager
def staging_directory(parent: str | None = None) -> Iterator[Path]:
    """Yield a fresh working directory and remove it on every exit path.

    Cleanup is best-effort: a failure is logged and never replaces the
    exception (or result) of the body.
    """

    try:
        workdir = Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX, dir=parent))
    except OSError as e:
        raise StagingError(f"Could not create a working directory: {e}") from e
    logger.debug("Created working directory %s", workdir)
    try:
        yield workdir
    finally:
        try:
            shutil.rmtree(workdir)
            logger.debug("Removed working directory %s", workdir)
        except OSError as e:
            logger.warning("Could not remove working directory %s: %s", workdir, e)


def stage_package(src: str, workdir: Path, file_name: str) -> Path:
    """Copy the package into workdir under file_name."""

    s = Path(src)
    if not s.is_file():
        raise FileNotFoundError(src)

    # Only a bare file name is accepted; the hint comes from installer metadata.
    name = Path(file_name).name
    if not name:
        raise ValueError(f"Invalid package file name: {file_name!r}")

    dst = workdir / name
    shutil.copy2(s, dst)
    logger.info("Staged package %s -> %s", s, dst)
    return dst
