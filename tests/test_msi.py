import ctypes

import pytest

from tcp_enabler.errors import InstallerUnavailableError
from tcp_enabler.lib import msi


@pytest.mark.skipif(hasattr(ctypes, "WinDLL"), reason="Windows Installer present")
def test_adapters_unavailable_off_windows():
    with pytest.raises(InstallerUnavailableError):
        msi.MsiPackageDatabase()
    with pytest.raises(InstallerUnavailableError):
        msi.MsiProductRegistry()


def test_read_string_grows_buffer():
    calls = []

    def getter(buf, size_ref):
        size = size_ref._obj
        calls.append(size.value)
        value = "x" * 300
        if size.value <= len(value):
            size.value = len(value)
            return msi.ERROR_MORE_DATA
        buf.value = value
        size.value = len(value)
        return msi.ERROR_SUCCESS

    rc, value = msi._read_string(getter)

    assert rc == msi.ERROR_SUCCESS
    assert value == "x" * 300
    assert calls == [257, 301]
