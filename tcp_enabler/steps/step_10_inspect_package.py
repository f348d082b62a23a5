from __future__ import annotations

import logging

from ..inspector import PackageInspector
from ..pipeline import RunState

logger = logging.getLogger(__name__)


class InspectPackageStep:
    step_id = "10_inspect_package"

    def __init__(self, inspector: PackageInspector) -> None:
        self.inspector = inspector

    def run(self, state: RunState) -> RunState:
        logger.info("Inspecting package %s", state.package_path)
        state.identity = self.inspector.read_package_identity(state.package_path)
        return state
