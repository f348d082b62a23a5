from __future__ import annotations

from typing import Optional, Sequence


class EnablerError(RuntimeError):
    """Base class for errors that end a run.

    exit_code is what the CLI returns to the shell.
    """

    exit_code = 1


class ConfigError(EnablerError):
    pass


class InstallerUnavailableError(EnablerError):
    """Windows Installer (msi.dll) cannot be loaded on this host."""


class PackageNotFoundError(EnablerError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Package not found: {path}")
        self.path = path


class InvalidPackageError(EnablerError):
    pass


class AmbiguousInstallationError(EnablerError):
    def __init__(self, upgrade_code: str, product_codes: Sequence[str]) -> None:
        super().__init__(
            f"Found {len(product_codes)} installed products for upgrade code {upgrade_code}: "
            + ", ".join(product_codes)
        )
        self.upgrade_code = upgrade_code
        self.product_codes = list(product_codes)


class IncompleteInstallationInfoError(EnablerError):
    pass


class DowngradeRejectedError(EnablerError):
    def __init__(self, installed: str, candidate: str) -> None:
        super().__init__(
            f"Installed version {installed} is newer than package version {candidate}; refusing to downgrade"
        )
        self.installed = installed
        self.candidate = candidate


class ProcessLaunchError(EnablerError):
    pass


class InstallationFailedError(EnablerError):
    """msiexec ran and reported failure. exit_code mirrors its return code."""

    def __init__(self, returncode: int, log_path: Optional[str]) -> None:
        super().__init__(f"Installation failed with exit code {returncode} (log: {log_path})")
        self.returncode = returncode
        self.log_path = log_path

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.returncode


class MsiCallError(EnablerError):
    """A Windows Installer API call returned an unexpected error code."""


class StagingError(EnablerError):
    pass
