from __future__ import annotations

import argparse
import logging
from typing import Dict, Optional

from .config import CONFIG_ENV_VAR, INTEGRATION_KEYS, EnablerConfig, load_config
from .errors import EnablerError, InstallationFailedError
from .inspector import PackageInspector
from .logging_utils import configure_logging
from .orchestrator import InstallationOrchestrator
from .pipeline import RunState, run_pipeline
from .reconciler import FeatureOverride
from .steps import DetectInstallationStep, InspectPackageStep, InstallStep, ReconcileFeaturesStep
from .summary import save_summary

logger = logging.getLogger(__name__)


def build_inspector(config: EnablerConfig) -> PackageInspector:
    # msi.dll is only loaded when a real run needs it.
    from .lib.msi import MsiPackageDatabase, MsiProductRegistry

    return PackageInspector(MsiPackageDatabase(), MsiProductRegistry(), config.upgrade_codes)


def build_orchestrator(config: EnablerConfig, *, dry_run: bool = False) -> InstallationOrchestrator:
    return InstallationOrchestrator(log_dir=config.log_dir, msiexec=config.msiexec, dry_run=dry_run)


def build_steps(inspector: PackageInspector, orchestrator: InstallationOrchestrator):
    return [
        InspectPackageStep(inspector),
        DetectInstallationStep(inspector),
        ReconcileFeaturesStep(),
        InstallStep(orchestrator),
    ]


def run(
    *,
    package_path: str,
    config: EnablerConfig,
    overrides: Optional[Dict[str, Optional[FeatureOverride]]] = None,
    inspector: Optional[PackageInspector] = None,
    orchestrator: Optional[InstallationOrchestrator] = None,
    summary_path: Optional[str] = None,
    dry_run: bool = False,
) -> RunState:
    """Inspect, reconcile and install. Raises EnablerError on failure."""

    state = RunState(package_path=package_path, config=config, overrides=dict(overrides or {}))

    try:
        if inspector is None:
            inspector = build_inspector(config)
        if orchestrator is None:
            orchestrator = build_orchestrator(config, dry_run=dry_run)

        result = run_pipeline(state=state, steps=build_steps(inspector, orchestrator))
        return result.state
    except EnablerError as e:
        state.errors.append({"step": state.current_step, "error": str(e)})
        raise
    except Exception as e:
        logger.exception("Run failed unexpectedly")
        state.errors.append({"step": state.current_step, "error": str(e)})
        raise
    finally:
        if summary_path:
            save_summary(summary_path, state.to_dict())


def _overrides_from_args(args: argparse.Namespace, config: EnablerConfig) -> Dict[str, Optional[FeatureOverride]]:
    overrides: Dict[str, Optional[FeatureOverride]] = {}
    for key in INTEGRATION_KEYS:
        choice = getattr(args, f"{key}_extension")
        if choice is not None:
            overrides[config.integration_feature(key)] = FeatureOverride(choice)
    return overrides


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="tcp-enabler",
        description="Enable TCP network tests support on the agent, keeping other features as installed.",
    )
    p.add_argument("package", help="Path to the agent .msi package")
    for key in INTEGRATION_KEYS:
        p.add_argument(
            f"--{key}-extension",
            choices=[o.value for o in FeatureOverride],
            default=None,
            help=f"Enable or disable the {key} integration feature (default: leave as installed)",
        )
    p.add_argument("--config", default=None, help=f"YAML config naming the product upgrade codes and features (default: ${CONFIG_ENV_VAR})")
    p.add_argument("--log", default=None, help="Also write this tool's log to a file")
    p.add_argument("--summary", default=None, help="Write a run summary (json|yaml)")
    p.add_argument("--dry-run", action="store_true", help="Plan and log the installer command without running it")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(log_path=args.log, level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = load_config(args.config)
        state = run(
            package_path=args.package,
            config=config,
            overrides=_overrides_from_args(args, config),
            summary_path=args.summary,
            dry_run=bool(args.dry_run),
        )
    except InstallationFailedError as e:
        logger.error("%s", e)
        logger.error("See the installer log for details: %s", e.log_path)
        return e.exit_code
    except EnablerError as e:
        logger.error("%s", e)
        return e.exit_code

    outcome = state.outcome
    logger.info("TCP network tests support is enabled (log: %s)", outcome.log_path if outcome else None)
    if outcome is not None and outcome.reboot_required:
        logger.warning("Reboot the machine to finish the installation")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
