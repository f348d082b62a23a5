from .step_10_inspect_package import InspectPackageStep
from .step_20_detect_installation import DetectInstallationStep
from .step_30_reconcile_features import ReconcileFeaturesStep
from .step_40_install import InstallStep

__all__ = [
    "InspectPackageStep",
    "DetectInstallationStep",
    "ReconcileFeaturesStep",
    "InstallStep",
]
