import io
import zipfile

import pytest

from chainfs.errors import UnsupportedOperationError
from chainfs.storage.zip_archive import ZipArchiveBackend
from chainfs.utils.zip_utils import ensure_seekable
from factories.archive_factories import make_entries, make_zip_bytes


def _make_zip_stream(entries: dict[str, bytes]) -> io.BytesIO:
    return io.BytesIO(make_zip_bytes(entries))


def test_list_within():
    entries = {"foo.txt": b"hello", "dir/bar.txt": b"world"}
    res = list(ZipArchiveBackend().list_within(_make_zip_stream(entries)))
    names = [e.locator for e in res]
    assert names == ["foo.txt", "dir/bar.txt"]

    # sizes reported should match the content lengths
    size_map = {e.locator: e.size for e in res}
    assert size_map["foo.txt"] == len(entries["foo.txt"])
    assert size_map["dir/bar.txt"] == len(entries["dir/bar.txt"])
    assert all(e.last_modified is not None for e in res)


def test_list_within_prefix_and_dirs():
    bio = io.BytesIO()
    with zipfile.ZipFile(bio, "w") as zf:
        zf.writestr("images/", b"")
        zf.writestr("images/a.png", b"a")
        zf.writestr("notes.txt", b"n")
    bio.seek(0)
    res = list(ZipArchiveBackend().list_within(bio, "images/"))
    assert [(e.locator, e.is_dir) for e in res] == [("images/", True), ("images/a.png", False)]


def test_open_within_reads_members():
    entries = make_entries(5)
    backend = ZipArchiveBackend()
    outer = _make_zip_stream(entries)
    for name, data in entries.items():
        with backend.open_within(outer, name) as member:
            assert member.read() == data
    # the outer stream stays usable for the caller
    assert not outer.closed


def test_open_within_seek_and_tell():
    outer = _make_zip_stream({"seek.txt": b"0123456789"})
    with ZipArchiveBackend().open_within(outer, "/seek.txt") as stream:
        stream.seek(5)
        assert stream.tell() == 5
        assert stream.read(2) == b"56"
        stream.seek(0)
        assert stream.read(3) == b"012"


def test_missing_member_and_corrupt_archive():
    backend = ZipArchiveBackend()
    with pytest.raises(FileNotFoundError):
        backend.open_within(_make_zip_stream({"a.txt": b"abc"}), "missing.txt")
    with pytest.raises(FileNotFoundError):
        backend.open_within(io.BytesIO(b"not a zip file"), "a.txt")
    with pytest.raises(FileNotFoundError):
        list(backend.list_within(io.BytesIO(b"not a zip file")))


def test_read_only():
    backend = ZipArchiveBackend()
    with pytest.raises(UnsupportedOperationError):
        backend.open_within(_make_zip_stream({"a.txt": b"abc"}), "a.txt", "wb")
    with pytest.raises(UnsupportedOperationError):
        backend.open("archive.zip")
    with pytest.raises(UnsupportedOperationError):
        backend.remove("a.txt")


def test_ensure_seekable_passes_seekable_streams_through():
    bio = io.BytesIO(b"abc")
    stream, copied = ensure_seekable(bio)
    assert stream is bio
    assert copied is False


def test_list_within_prefix_matches_whole_components():
    outer = _make_zip_stream({"images/x.png": b"x", "images2/y.png": b"y", "images": b"plain"})
    backend = ZipArchiveBackend()
    assert [e.locator for e in backend.list_within(outer, "images")] == ["images/x.png", "images"]
    assert [e.locator for e in backend.list_within(outer, "images2/")] == ["images2/y.png"]


def test_open_within_passes_other_member_errors_through(monkeypatch):
    outer = _make_zip_stream({"a.txt": b"abc"})
    closed = []
    real_close = zipfile.ZipFile.close

    def encrypted(self, name, mode="r", pwd=None, **kwargs):
        raise RuntimeError(f"File {name!r} is encrypted, password required for extraction")

    def tracking_close(self):
        closed.append(self)
        real_close(self)

    monkeypatch.setattr(zipfile.ZipFile, "open", encrypted)
    monkeypatch.setattr(zipfile.ZipFile, "close", tracking_close)
    with pytest.raises(RuntimeError, match="password required"):
        ZipArchiveBackend().open_within(outer, "a.txt")
    assert closed
    # Restore ZipFile.close before `closed` is freed: otherwise the archive's
    # __del__ re-enters tracking_close and appends to the dying list (segfault).
    monkeypatch.undo()
