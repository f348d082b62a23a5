import logging

import pytest

from tcp_enabler.errors import StagingError
from tcp_enabler.lib import staging


def test_directory_removed_after_exception(tmp_path):
    with pytest.raises(RuntimeError):
        with staging.staging_directory(parent=str(tmp_path)) as workdir:
            (workdir / "f.txt").write_text("x", encoding="utf-8")
            raise RuntimeError("boom")
    assert not workdir.exists()


def test_cleanup_failure_is_logged_not_raised(tmp_path, monkeypatch, caplog):
    def broken_rmtree(path, *args, **kwargs):
        raise PermissionError("locked")

    monkeypatch.setattr(staging.shutil, "rmtree", broken_rmtree)

    with caplog.at_level(logging.WARNING):
        with staging.staging_directory(parent=str(tmp_path)) as workdir:
            pass

    assert "Could not remove working directory" in caplog.text
    assert workdir.exists()


def test_cleanup_failure_does_not_mask_body_error(tmp_path, monkeypatch):
    def broken_rmtree(path, *args, **kwargs):
        raise OSError("locked")

    monkeypatch.setattr(staging.shutil, "rmtree", broken_rmtree)

    with pytest.raises(ValueError, match="real"):
        with staging.staging_directory(parent=str(tmp_path)):
            raise ValueError("real failure")


def test_stage_package_uses_bare_file_name(tmp_path):
    src = tmp_path / "src.msi"
    src.write_bytes(b"payload")
    workdir = tmp_path / "work"
    workdir.mkdir()

    dst = staging.stage_package(str(src), workdir, "Agent.msi")

    assert dst == workdir / "Agent.msi"
    assert dst.read_bytes() == b"payload"
    assert src.exists()


def test_stage_package_rejects_empty_name(tmp_path):
    src = tmp_path / "src.msi"
    src.write_bytes(b"payload")
    with pytest.raises(ValueError):
        staging.stage_package(str(src), tmp_path, "")


def test_workdir_creation_failure_is_a_staging_error(tmp_path, monkeypatch):
    def no_space(*args, **kwargs):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(staging.tempfile, "mkdtemp", no_space)

    with pytest.raises(StagingError, match="working directory"):
        with staging.staging_directory(parent=str(tmp_path)):
            pytest.fail("body must not run")
