from __future__ import annotations

import logging

from ..pipeline import RunState
from ..reconciler import ExistingFeatures, check_not_downgrade, describe_transition, reconcile

logger = logging.getLogger(__name__)


class ReconcileFeaturesStep:
    step_id = "30_reconcile_features"

    def run(self, state: RunState) -> RunState:
        if state.identity is None:
            raise RuntimeError("package identity missing; inspect step must run first")

        existing = None
        if state.existing is not None:
            existing = ExistingFeatures(
                version=state.existing.version,
                feature_states=state.existing_features,
            )

        check_not_downgrade(state.identity.version, existing)
        state.transition = describe_transition(state.identity.version, existing)
        logger.info("Versioning decision: %s", state.transition)

        cfg = state.config
        state.target_features = reconcile(
            state.identity.version,
            existing,
            state.overrides,
            mandatory_enabled=cfg.mandatory_features,
            recognized_features=cfg.recognized_features,
        )

        ignored = sorted(set(state.existing_features) - set(state.target_features))
        if ignored:
            logger.debug("Ignoring installed features unknown to this tool: %s", ", ".join(ignored))
        logger.info(
            "Target features: %s",
            ", ".join(f"{n}={'on' if v else 'off'}" for n, v in state.target_features.items()),
        )
        return state
