import pytest

from fakes import PRODUCT_CODE, UPGRADE_CODE, FakeProductRegistry, installed_registry, package_properties
from tcp_enabler.errors import (
    AmbiguousInstallationError,
    IncompleteInstallationInfoError,
    InvalidPackageError,
    MsiCallError,
    PackageNotFoundError,
)
from tcp_enabler.versioning import ProductVersion


def test_reads_identity_from_package(make_inspector, package_file):
    identity = make_inspector().read_package_identity(package_file)

    assert identity.product_name == "Network Agent"
    assert identity.version == ProductVersion.parse("2.0.0")
    assert identity.upgrade_code == UPGRADE_CODE


def test_upgrade_code_match_is_case_insensitive(make_inspector, package_file):
    props = package_properties(upgrade_code=UPGRADE_CODE.lower())
    identity = make_inspector(properties=props).read_package_identity(package_file)
    assert identity.upgrade_code == UPGRADE_CODE


def test_missing_package_file(make_inspector, tmp_path):
    with pytest.raises(PackageNotFoundError):
        make_inspector().read_package_identity(str(tmp_path / "nope.msi"))


def test_directory_is_not_a_package(make_inspector, tmp_path):
    with pytest.raises(PackageNotFoundError):
        make_inspector().read_package_identity(str(tmp_path))


@pytest.mark.parametrize(
    "upgrade_code",
    [
        "{00000000-0000-0000-0000-000000000000}",
        "{2B9A1D4E-6C3F-4E8A-9B1D-7F0C5E2A8D42}",
        "not-a-guid",
    ],
)
def test_foreign_upgrade_code_is_invalid(make_inspector, package_file, upgrade_code):
    props = package_properties(upgrade_code=upgrade_code)
    with pytest.raises(InvalidPackageError):
        make_inspector(properties=props).read_package_identity(package_file)


@pytest.mark.parametrize("missing", ["ProductName", "ProductVersion", "UpgradeCode"])
def test_missing_identity_property_is_invalid(make_inspector, package_file, missing):
    props = package_properties()
    del props[missing]
    with pytest.raises(InvalidPackageError, match=missing):
        make_inspector(properties=props).read_package_identity(package_file)


def test_blank_identity_property_is_invalid(make_inspector, package_file):
    props = package_properties()
    props["ProductName"] = "  "
    with pytest.raises(InvalidPackageError):
        make_inspector(properties=props).read_package_identity(package_file)


def test_unparsable_package_version_is_invalid(make_inspector, package_file):
    with pytest.raises(InvalidPackageError):
        make_inspector(properties=package_properties(version="two")).read_package_identity(package_file)


def test_no_existing_installation(make_inspector):
    assert make_inspector().find_existing_installation(UPGRADE_CODE) is None


def test_existing_installation_details(make_inspector):
    inspector = make_inspector(registry=installed_registry(version="1.5.2"))

    existing = inspector.find_existing_installation(UPGRADE_CODE)

    assert existing is not None
    assert existing.product_code == PRODUCT_CODE
    assert existing.product_name == "Network Agent"
    assert existing.version == ProductVersion.parse("1.5.2")
    assert existing.package_file_name == "NetworkAgent-x64.msi"


def test_more_than_one_installation_is_ambiguous(make_inspector):
    registry = installed_registry()
    registry.products[UPGRADE_CODE].append("{99999999-2222-3333-4444-555555555555}")

    with pytest.raises(AmbiguousInstallationError) as excinfo:
        make_inspector(registry=registry).find_existing_installation(UPGRADE_CODE)
    assert len(excinfo.value.product_codes) == 2


@pytest.mark.parametrize("attribute", ["InstalledProductName", "VersionString", "PackageName"])
def test_missing_product_detail_is_fatal(make_inspector, attribute):
    registry = installed_registry()
    del registry.info[PRODUCT_CODE][attribute]

    with pytest.raises(IncompleteInstallationInfoError, match=attribute):
        make_inspector(registry=registry).find_existing_installation(UPGRADE_CODE)


def test_unreadable_installed_version_is_incomplete_info(make_inspector):
    registry = installed_registry(version="garbage")
    with pytest.raises(IncompleteInstallationInfoError):
        make_inspector(registry=registry).find_existing_installation(UPGRADE_CODE)


def test_registry_error_while_reading_detail(make_inspector):
    class BrokenRegistry(FakeProductRegistry):
        def product_info(self, product_code, attribute):
            raise MsiCallError("error 1610")

    with pytest.raises(IncompleteInstallationInfoError):
        make_inspector(registry=BrokenRegistry()).read_product_detail(PRODUCT_CODE, "VersionString")


def test_feature_states_for_installed_product(make_inspector):
    registry = installed_registry(features={"IeExtension": True, "ChromeExtension": False})
    states = make_inspector(registry=registry).read_feature_states(PRODUCT_CODE)
    assert states == {"IeExtension": True, "ChromeExtension": False}


def test_feature_states_without_installation_is_empty(make_inspector):
    assert make_inspector(registry=installed_registry()).read_feature_states(None) == {}
