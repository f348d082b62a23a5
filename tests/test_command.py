from unittest import mock

import pytest

from tcp_enabler.errors import ProcessLaunchError
from tcp_enabler.lib import command


def test_dry_run_does_not_execute():
    with mock.patch.object(command.subprocess, "run") as run_mock:
        result = command.run_cmd(["msiexec.exe", "/i", "a.msi"], dry_run=True)
    run_mock.assert_not_called()
    assert result.returncode == 0


def test_nonzero_returncode_is_returned_not_raised():
    with mock.patch.object(command.subprocess, "run") as run_mock:
        run_mock.return_value = mock.Mock(returncode=1603, stdout="", stderr="")
        result = command.run_cmd(["msiexec.exe"])
    assert result.returncode == 1603


def test_launch_failure_is_translated():
    with mock.patch.object(command.subprocess, "run", side_effect=FileNotFoundError("no msiexec")):
        with pytest.raises(ProcessLaunchError):
            command.run_cmd(["msiexec.exe"])


def test_fmt_argv_quotes_spaces():
    assert command.fmt_argv(["msiexec.exe", "/i", "C:\\Program Files\\a.msi"]) == 'msiexec.exe /i "C:\\Program Files\\a.msi"'
