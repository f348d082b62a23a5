"""Windows Installer adapters backed by msi.dll.

MsiPackageDatabase reads the Property table of a package file.
MsiProductRegistry answers questions about installed products.

Both load msi.dll lazily and raise InstallerUnavailableError on hosts
without Windows Installer.
"""

from __future__ import annotations

import ctypes
import logging
from ctypes import wintypes
from typing import Callable, Dict, List, Optional

from ..errors import InstallerUnavailableError, InvalidPackageError, MsiCallError

logger = logging.getLogger(__name__)

ERROR_SUCCESS = 0
ERROR_MORE_DATA = 234
ERROR_NO_MORE_ITEMS = 259
ERROR_UNKNOWN_PRODUCT = 1605
ERROR_UNKNOWN_PROPERTY = 1608

INSTALLSTATE_LOCAL = 3

# GUID string in braces plus terminator.
_GUID_CHARS = 39
_MAX_FEATURE_CHARS = 38

MSIHANDLE = wintypes.ULONG

_PROPERTY_QUERY = "SELECT `Property`, `Value` FROM `Property`"


def _load_msi() -> ctypes.CDLL:
    windll = getattr(ctypes, "WinDLL", None)
    if windll is None:
        raise InstallerUnavailableError("Windows Installer is not available on this platform")
    try:
        dll = windll("msi")
    except OSError as e:
        raise InstallerUnavailableError(f"Could not load msi.dll: {e}") from e

    dll.MsiOpenDatabaseW.argtypes = [wintypes.LPCWSTR, wintypes.LPCWSTR, ctypes.POINTER(MSIHANDLE)]
    dll.MsiOpenDatabaseW.restype = wintypes.UINT
    dll.MsiDatabaseOpenViewW.argtypes = [MSIHANDLE, wintypes.LPCWSTR, ctypes.POINTER(MSIHANDLE)]
    dll.MsiDatabaseOpenViewW.restype = wintypes.UINT
    dll.MsiViewExecute.argtypes = [MSIHANDLE, MSIHANDLE]
    dll.MsiViewExecute.restype = wintypes.UINT
    dll.MsiViewFetch.argtypes = [MSIHANDLE, ctypes.POINTER(MSIHANDLE)]
    dll.MsiViewFetch.restype = wintypes.UINT
    dll.MsiRecordGetStringW.argtypes = [
        MSIHANDLE,
        wintypes.UINT,
        wintypes.LPWSTR,
        ctypes.POINTER(wintypes.DWORD),
    ]
    dll.MsiRecordGetStringW.restype = wintypes.UINT
    dll.MsiCloseHandle.argtypes = [MSIHANDLE]
    dll.MsiCloseHandle.restype = wintypes.UINT
    dll.MsiEnumRelatedProductsW.argtypes = [
        wintypes.LPCWSTR,
        wintypes.DWORD,
        wintypes.DWORD,
        wintypes.LPWSTR,
    ]
    dll.MsiEnumRelatedProductsW.restype = wintypes.UINT
    dll.MsiGetProductInfoW.argtypes = [
        wintypes.LPCWSTR,
        wintypes.LPCWSTR,
        wintypes.LPWSTR,
        ctypes.POINTER(wintypes.DWORD),
    ]
    dll.MsiGetProductInfoW.restype = wintypes.UINT
    dll.MsiEnumFeaturesW.argtypes = [
        wintypes.LPCWSTR,
        wintypes.DWORD,
        wintypes.LPWSTR,
        wintypes.LPWSTR,
    ]
    dll.MsiEnumFeaturesW.restype = wintypes.UINT
    dll.MsiQueryFeatureStateW.argtypes = [wintypes.LPCWSTR, wintypes.LPCWSTR]
    dll.MsiQueryFeatureStateW.restype = ctypes.c_int
    return dll


def _read_string(call: Callable[..., int]) -> tuple[int, str]:
    """Call an msi.dll string getter, growing the buffer on ERROR_MORE_DATA."""

    size = wintypes.DWORD(256)
    while True:
        buf = ctypes.create_unicode_buffer(size.value + 1)
        size = wintypes.DWORD(size.value + 1)
        rc = call(buf, ctypes.byref(size))
        if rc == ERROR_MORE_DATA:
            continue
        return rc, buf.value if rc == ERROR_SUCCESS else ""


class MsiPackageDatabase:
    """Reads package properties straight from an .msi file."""

    def __init__(self) -> None:
        self._dll = _load_msi()

    def read_properties(self, path: str) -> Dict[str, str]:
        dll = self._dll
        hdb = MSIHANDLE(0)
        # Persist mode NULL is MSIDBOPEN_READONLY.
        rc = dll.MsiOpenDatabaseW(path, None, ctypes.byref(hdb))
        if rc != ERROR_SUCCESS:
            raise InvalidPackageError(f"Could not open package database {path} (error {rc})")

        props: Dict[str, str] = {}
        hview = MSIHANDLE(0)
        try:
            rc = dll.MsiDatabaseOpenViewW(hdb, _PROPERTY_QUERY, ctypes.byref(hview))
            if rc != ERROR_SUCCESS:
                raise InvalidPackageError(f"Could not query Property table of {path} (error {rc})")
            rc = dll.MsiViewExecute(hview, 0)
            if rc != ERROR_SUCCESS:
                raise InvalidPackageError(f"Could not query Property table of {path} (error {rc})")

            while True:
                hrec = MSIHANDLE(0)
                rc = dll.MsiViewFetch(hview, ctypes.byref(hrec))
                if rc == ERROR_NO_MORE_ITEMS:
                    break
                if rc != ERROR_SUCCESS:
                    raise InvalidPackageError(f"Could not read Property table of {path} (error {rc})")
                try:
                    _, name = _read_string(lambda b, s: dll.MsiRecordGetStringW(hrec, 1, b, s))
                    _, value = _read_string(lambda b, s: dll.MsiRecordGetStringW(hrec, 2, b, s))
                finally:
                    dll.MsiCloseHandle(hrec)
                props[name] = value
        finally:
            if hview.value:
                dll.MsiCloseHandle(hview)
            dll.MsiCloseHandle(hdb)

        logger.debug("Read %d properties from %s", len(props), path)
        return props


class MsiProductRegistry:
    """Queries the Windows Installer product registry."""

    def __init__(self) -> None:
        self._dll = _load_msi()

    def related_products(self, upgrade_code: str) -> List[str]:
        codes: List[str] = []
        index = 0
        while True:
            buf = ctypes.create_unicode_buffer(_GUID_CHARS)
            rc = self._dll.MsiEnumRelatedProductsW(upgrade_code, 0, index, buf)
            if rc == ERROR_NO_MORE_ITEMS:
                return codes
            if rc != ERROR_SUCCESS:
                raise MsiCallError(f"MsiEnumRelatedProducts failed for {upgrade_code} (error {rc})")
            codes.append(buf.value)
            index += 1

    def product_info(self, product_code: str, attribute: str) -> Optional[str]:
        dll = self._dll
        rc, value = _read_string(lambda b, s: dll.MsiGetProductInfoW(product_code, attribute, b, s))
        if rc in (ERROR_UNKNOWN_PRODUCT, ERROR_UNKNOWN_PROPERTY):
            return None
        if rc != ERROR_SUCCESS:
            raise MsiCallError(f"MsiGetProductInfo({product_code}, {attribute}) failed (error {rc})")
        return value

    def feature_states(self, product_code: str) -> Dict[str, bool]:
        states: Dict[str, bool] = {}
        index = 0
        while True:
            feature = ctypes.create_unicode_buffer(_MAX_FEATURE_CHARS + 1)
            parent = ctypes.create_unicode_buffer(_MAX_FEATURE_CHARS + 1)
            rc = self._dll.MsiEnumFeaturesW(product_code, index, feature, parent)
            if rc == ERROR_NO_MORE_ITEMS:
                return states
            if rc != ERROR_SUCCESS:
                raise MsiCallError(f"MsiEnumFeatures failed for {product_code} (error {rc})")
            state = self._dll.MsiQueryFeatureStateW(product_code, feature.value)
            states[feature.value] = state == INSTALLSTATE_LOCAL
            index += 1
