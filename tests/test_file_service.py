"""
Tests for the file service.
"""
import uuid
from unittest.mock import patch

import pytest

from fileagent.core.exceptions import NotFoundError, OutsideRootError, UploadTooLargeError, ValidationError, WrongKindError
from fileagent.services.file_service import FileService, sanitize_filename


@pytest.mark.parametrize("filename,expected", [
    ("report.txt", "report.txt"),
    ("../../etc/passwd", "passwd"),
    ("C:\\Users\\me\\notes.txt", "notes.txt"),
    ("dir/sub/file.bin", "file.bin"),
    ("bad\x00name.txt", "badname.txt"),
])
def test_sanitize_filename_keeps_basename(filename, expected):
    assert sanitize_filename(filename) == expected


@pytest.mark.parametrize("filename", [None, "", "..", ".", "dir/.."])
def test_sanitize_filename_falls_back_to_uuid(filename):
    uuid.UUID(sanitize_filename(filename))


def test_list_path_uses_configured_root(root_dir):
    assert FileService().list_path("/") == ["data.zip", "exam123.txt", "tmp"]


def test_list_path_of_file(root_dir):
    assert FileService().list_path("tmp/testup.txt") == [str((root_dir / "tmp" / "testup.txt").resolve())]


def test_save_upload_writes_into_directory(root_dir):
    path = FileService().save_upload("tmp", "new.txt", b"payload")
    assert path == (root_dir / "tmp" / "new.txt").resolve()
    assert path.read_bytes() == b"payload"


def test_save_upload_into_file_is_wrong_kind(root_dir):
    with pytest.raises(WrongKindError):
        FileService().save_upload("exam123.txt", "new.txt", b"payload")


def test_save_upload_into_missing_directory(root_dir):
    with pytest.raises(NotFoundError):
        FileService().save_upload("missing", "new.txt", b"payload")


def test_save_upload_rejects_oversized_content(root_dir):
    with patch("fileagent.core.config.settings.MAX_UPLOAD_SIZE", 4):
        with pytest.raises(UploadTooLargeError) as exc_info:
            FileService().save_upload("tmp", "big.txt", b"12345")
    assert isinstance(exc_info.value, ValidationError)
    assert exc_info.value.status_code == 413
    assert not (root_dir / "tmp" / "big.txt").exists()


def test_explicit_root_overrides_settings(tmp_path):
    (tmp_path / "only.txt").write_text("x")
    assert FileService(str(tmp_path)).list_path("") == ["only.txt"]


def test_save_upload_refuses_symlink_leading_outside_root(root_dir):
    outside = root_dir.parent / "outside.txt"
    outside.write_text("untouched")
    (root_dir / "tmp" / "link.txt").symlink_to(outside)

    with pytest.raises(OutsideRootError):
        FileService().save_upload("tmp", "link.txt", b"replaced")

    assert outside.read_text() == "untouched"


def test_save_upload_over_directory_is_wrong_kind(root_dir):
    with pytest.raises(WrongKindError) as exc_info:
        FileService().save_upload("/", "tmp", b"payload")

    assert exc_info.value.status_code == 400
    assert (root_dir / "tmp").is_dir()


@pytest.mark.parametrize("path,expected", [
    ("", "/"),
    ("tmp", "/tmp"),
    ("tmp/../exam123.txt", "/exam123.txt"),
    ("tmp/./testup.txt", "/tmp/testup.txt"),
    ("tmp//testup.txt", "/tmp/testup.txt"),
])
def test_logical_path_of_located_target(root_dir, path, expected):
    service = FileService()
    assert service.logical_path(service.locate(path)) == expected


def test_logical_path_follows_symlink_inside_root(root_dir):
    (root_dir / "alias").symlink_to(root_dir / "exam123.txt")
    service = FileService()

    assert service.logical_path(service.locate("alias")) == "/exam123.txt"
