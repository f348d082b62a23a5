from __future__ import annotations

import logging
import os

from ..errors import InstallationFailedError
from ..orchestrator import InstallationOrchestrator
from ..pipeline import RunState

logger = logging.getLogger(__name__)


class InstallStep:
    step_id = "40_install"

    def __init__(self, orchestrator: InstallationOrchestrator) -> None:
        self.orchestrator = orchestrator

    def run(self, state: RunState) -> RunState:
        if not state.target_features:
            raise RuntimeError("target features missing; reconcile step must run first")

        # Keep the originally installed package name so repair/uninstall find their source.
        if state.existing is not None:
            file_name = state.existing.package_file_name
        else:
            file_name = os.path.basename(state.package_path)

        outcome = self.orchestrator.execute(state.package_path, file_name, state.target_features)
        state.outcome = outcome

        if not outcome.succeeded:
            raise InstallationFailedError(outcome.returncode, outcome.log_path)

        logger.info(
            "Installation succeeded%s (log: %s)",
            ", reboot pending" if outcome.reboot_required else "",
            outcome.log_path,
        )
        return state
