from __future__ import annotations

import pytest

from fakes import FakePackageDatabase, FakeProductRegistry, FakeRunner, make_config, package_properties, write_config
from tcp_enabler.config import CONFIG_ENV_VAR, EnablerConfig
from tcp_enabler.inspector import PackageInspector
from tcp_enabler.orchestrator import InstallationOrchestrator


@pytest.fixture(autouse=True)
def _no_ambient_config(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


@pytest.fixture
def config(tmp_path) -> EnablerConfig:
    return make_config(str(tmp_path / "logs"))


@pytest.fixture
def config_file(tmp_path, config) -> str:
    """The `config` fixture written out as YAML, for CLI runs."""
    return write_config(tmp_path / "enabler.yaml", config.log_dir)


@pytest.fixture
def package_file(tmp_path) -> str:
    p = tmp_path / "incoming" / "agent-2.0.0.msi"
    p.parent.mkdir()
    p.write_bytes(b"fake msi payload")
    return str(p)


@pytest.fixture
def make_inspector(config):
    def factory(properties=None, registry=None) -> PackageInspector:
        db = FakePackageDatabase(properties=package_properties() if properties is None else properties)
        return PackageInspector(db, registry or FakeProductRegistry(), config.upgrade_codes)

    return factory


@pytest.fixture
def make_orchestrator(config):
    def factory(runner: FakeRunner) -> InstallationOrchestrator:
        return InstallationOrchestrator(log_dir=config.log_dir, msiexec="msiexec.exe", runner=runner)

    return factory
