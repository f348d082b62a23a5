from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

from .errors import DowngradeRejectedError
from .versioning import ProductVersion


class FeatureOverride(enum.Enum):
    """Explicit caller intent for one feature. Absence means leave as-is."""

    ENABLE = "enable"
    DISABLE = "disable"


@dataclass(frozen=True)
class ExistingFeatures:
    version: ProductVersion
    feature_states: Mapping[str, bool] = field(default_factory=dict)


def check_not_downgrade(candidate_version: ProductVersion, existing: Optional[ExistingFeatures]) -> None:
    if existing is not None and existing.version > candidate_version:
        raise DowngradeRejectedError(str(existing.version), str(candidate_version))


def describe_transition(candidate_version: ProductVersion, existing: Optional[ExistingFeatures]) -> str:
    if existing is None:
        return f"fresh install of {candidate_version}"
    if existing.version == candidate_version:
        return f"re-install of {candidate_version}"
    if existing.version < candidate_version:
        return f"upgrade from {existing.version} to {candidate_version}"
    return f"downgrade from {existing.version} to {candidate_version}"


def reconcile(
    candidate_version: ProductVersion,
    existing: Optional[ExistingFeatures],
    overrides: Mapping[str, Optional[FeatureOverride]],
    mandatory_enabled: Iterable[str],
    recognized_features: Iterable[str],
) -> Dict[str, bool]:
    """Compute the target feature state.

    Precedence, lowest to highest: everything off, existing installation
    state, mandatory features on, caller overrides. Feature names recorded by
    the existing installation but not in recognized_features are dropped.
    """

    check_not_downgrade(candidate_version, existing)

    target: Dict[str, bool] = {name: False for name in recognized_features}

    mandatory = list(mandatory_enabled)
    unknown = [n for n in (*mandatory, *overrides) if n not in target]
    if unknown:
        raise ValueError(f"Features not in the recognized set: {', '.join(sorted(set(unknown)))}")

    if existing is not None:
        for name, enabled in existing.feature_states.items():
            if name in target:
                target[name] = bool(enabled)

    for name in mandatory:
        target[name] = True

    for name, override in overrides.items():
        if override is FeatureOverride.ENABLE:
            target[name] = True
        elif override is FeatureOverride.DISABLE:
            target[name] = False

    return target
