"""Package and installed-product inspection.

The inspector talks to two collaborators:

``PackageDatabase``
    Reads the Property table of a package file.

``ProductRegistry``
    Looks up installed products by upgrade code and reports their details
    and per-feature install state.

Keeping "read identity from a file" apart from "look up by identity" lets the
reconciler be exercised with synthetic data and no real package or host.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from .errors import (
    AmbiguousInstallationError,
    IncompleteInstallationInfoError,
    InvalidPackageError,
    MsiCallError,
    PackageNotFoundError,
)
from .versioning import ProductVersion

logger = logging.getLogger(__name__)

# Property table names.
PROP_PRODUCT_NAME = "ProductName"
PROP_PRODUCT_VERSION = "ProductVersion"
PROP_UPGRADE_CODE = "UpgradeCode"
REQUIRED_PROPERTIES = (PROP_PRODUCT_NAME, PROP_PRODUCT_VERSION, PROP_UPGRADE_CODE)

# MsiGetProductInfo attributes.
INFO_PRODUCT_NAME = "InstalledProductName"
INFO_VERSION = "VersionString"
INFO_PACKAGE_NAME = "PackageName"


class PackageDatabase(Protocol):
    def read_properties(self, path: str) -> Mapping[str, str]:
        ...


class ProductRegistry(Protocol):
    def related_products(self, upgrade_code: str) -> List[str]:
        ...

    def product_info(self, product_code: str, attribute: str) -> Optional[str]:
        ...

    def feature_states(self, product_code: str) -> Dict[str, bool]:
        ...


@dataclass(frozen=True)
class PackageIdentity:
    product_name: str
    version: ProductVersion
    upgrade_code: str


@dataclass(frozen=True)
class InstalledProduct:
    product_code: str
    product_name: str
    version: ProductVersion
    package_file_name: str


def normalize_guid(value: str) -> str:
    return value.strip().upper()


class PackageInspector:
    def __init__(
        self,
        database: PackageDatabase,
        registry: ProductRegistry,
        upgrade_codes: Iterable[str],
    ) -> None:
        self.database = database
        self.registry = registry
        self.upgrade_codes: Tuple[str, ...] = tuple(normalize_guid(c) for c in upgrade_codes)

    def read_package_identity(self, path: str) -> PackageIdentity:
        p = Path(path)
        if not p.is_file():
            raise PackageNotFoundError(path)

        props = self.database.read_properties(str(p))

        missing = [k for k in REQUIRED_PROPERTIES if not (props.get(k) or "").strip()]
        if missing:
            raise InvalidPackageError(f"{path}: missing required properties: {', '.join(missing)}")

        upgrade_code = normalize_guid(props[PROP_UPGRADE_CODE])
        if upgrade_code not in self.upgrade_codes:
            raise InvalidPackageError(f"{path}: unrecognized upgrade code {upgrade_code}")

        try:
            version = ProductVersion.parse(props[PROP_PRODUCT_VERSION])
        except ValueError as e:
            raise InvalidPackageError(f"{path}: {e}") from e

        identity = PackageIdentity(
            product_name=props[PROP_PRODUCT_NAME].strip(),
            version=version,
            upgrade_code=upgrade_code,
        )
        logger.info(
            "Package %s: %s %s (upgrade code %s)",
            p.name,
            identity.product_name,
            identity.version,
            identity.upgrade_code,
        )
        return identity

    def find_existing_installation(self, upgrade_code: str) -> Optional[InstalledProduct]:
        codes = list(self.registry.related_products(upgrade_code))
        if not codes:
            return None
        if len(codes) > 1:
            raise AmbiguousInstallationError(upgrade_code, codes)

        product_code = codes[0]
        version_text = self.read_product_detail(product_code, INFO_VERSION)
        try:
            version = ProductVersion.parse(version_text)
        except ValueError as e:
            raise IncompleteInstallationInfoError(
                f"Installed product {product_code} has an unreadable version: {e}"
            ) from e

        return InstalledProduct(
            product_code=product_code,
            product_name=self.read_product_detail(product_code, INFO_PRODUCT_NAME),
            version=version,
            package_file_name=self.read_product_detail(product_code, INFO_PACKAGE_NAME),
        )

    def read_feature_states(self, product_code: Optional[str]) -> Dict[str, bool]:
        if not product_code:
            return {}
        return dict(self.registry.feature_states(product_code))

    def read_product_detail(self, product_code: str, field: str) -> str:
        try:
            value = self.registry.product_info(product_code, field)
        except MsiCallError as e:
            raise IncompleteInstallationInfoError(
                f"Could not read {field} of installed product {product_code}: {e}"
            ) from e
        if value is None or not value.strip():
            raise IncompleteInstallationInfoError(
                f"Could not read {field} of installed product {product_code}"
            )
        return value.strip()
