from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from .config import EnablerConfig
from .inspector import InstalledProduct, PackageIdentity
from .orchestrator import InstallationOutcome
from .reconciler import FeatureOverride

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    """Everything one run learns, in pipeline order."""

    package_path: str
    config: EnablerConfig
    overrides: Mapping[str, Optional[FeatureOverride]] = field(default_factory=dict)
    identity: Optional[PackageIdentity] = None
    existing: Optional[InstalledProduct] = None
    existing_features: Dict[str, bool] = field(default_factory=dict)
    transition: Optional[str] = None
    target_features: Dict[str, bool] = field(default_factory=dict)
    outcome: Optional[InstallationOutcome] = None
    current_step: Optional[str] = None
    completed_steps: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "package_path": self.package_path,
            "overrides": {k: v.value for k, v in self.overrides.items() if v is not None},
            "package": None,
            "existing": None,
            "existing_features": dict(self.existing_features),
            "transition": self.transition,
            "target_features": dict(self.target_features),
            "outcome": None,
            "execution": {
                "current_step": self.current_step,
                "completed_steps": list(self.completed_steps),
                "errors": list(self.errors),
            },
        }
        if self.identity is not None:
            data["package"] = {
                "product_name": self.identity.product_name,
                "version": str(self.identity.version),
                "upgrade_code": self.identity.upgrade_code,
            }
        if self.existing is not None:
            data["existing"] = {
                "product_code": self.existing.product_code,
                "product_name": self.existing.product_name,
                "version": str(self.existing.version),
                "package_file_name": self.existing.package_file_name,
            }
        if self.outcome is not None:
            data["outcome"] = {
                "status": self.outcome.status.value,
                "returncode": self.outcome.returncode,
                "log_path": self.outcome.log_path,
            }
        return data


class Step(Protocol):
    """A single pipeline step."""

    step_id: str

    def run(self, state: RunState) -> RunState:
        ...


@dataclass(frozen=True)
class PipelineResult:
    state: RunState
    ran_steps: List[str]


def run_pipeline(*, state: RunState, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order. The first exception ends the run."""

    ran: List[str] = []

    for step in steps:
        state.current_step = step.step_id
        logger.info("Running step %s", step.step_id)
        state = step.run(state)
        state.completed_steps.append(step.step_id)
        ran.append(step.step_id)

    state.current_step = None
    return PipelineResult(state=state, ran_steps=ran)
