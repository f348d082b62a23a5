from __future__ import annotations

import logging

from ..inspector import PackageInspector
from ..pipeline import RunState

logger = logging.getLogger(__name__)


class DetectInstallationStep:
    step_id = "20_detect_installation"

    def __init__(self, inspector: PackageInspector) -> None:
        self.inspector = inspector

    def run(self, state: RunState) -> RunState:
        if state.identity is None:
            raise RuntimeError("package identity missing; inspect step must run first")

        logger.info("Looking for an existing installation (upgrade code %s)", state.identity.upgrade_code)
        existing = self.inspector.find_existing_installation(state.identity.upgrade_code)
        state.existing = existing

        if existing is None:
            logger.info("No existing installation found")
            state.existing_features = {}
            return state

        state.existing_features = self.inspector.read_feature_states(existing.product_code)
        logger.info(
            "Found %s %s (%s, package %s)",
            existing.product_name,
            existing.version,
            existing.product_code,
            existing.package_file_name,
        )
        for name, enabled in state.existing_features.items():
            logger.debug("Installed feature %s: %s", name, "enabled" if enabled else "disabled")
        return state
