import pytest

from cborattr.fs_backend import (
    DirectoryBackend,
    FileBackend,
    MgmtErr,
    MgmtError,
    UnsupportedBackend,
)


@pytest.fixture
def backend(tmp_path):
    return DirectoryBackend(tmp_path)


@pytest.mark.parametrize(
    "code, name",
    [(0, "EOK"), (3, "EINVAL"), (8, "ENOTSUP")],
)
def test_error_codes_fixed_by_protocol(code, name):
    err = MgmtError(MgmtErr(code))
    assert str(err) == name
    assert int(err.code) == code


def test_mgmt_error_carries_code():
    err = MgmtError(MgmtErr.ENOENT)
    assert err.code is MgmtErr.ENOENT
    assert str(err) == "ENOENT"


def test_file_backend_is_abstract():
    with pytest.raises(TypeError):
        FileBackend()


@pytest.mark.parametrize(
    "call",
    [
        lambda b: b.filelen("/f"),
        lambda b: b.read("/f", 0, 10),
        lambda b: b.write("/f", 0, b"x"),
    ],
)
def test_unsupported_backend_refuses(call):
    with pytest.raises(MgmtError) as info:
        call(UnsupportedBackend())
    assert info.value.code is MgmtErr.ENOTSUP


def test_write_then_read_round_trip(backend):
    backend.write("/file.bin", 0, b"hello world")
    assert backend.read("/file.bin", 0, 100) == b"hello world"
    assert backend.filelen("/file.bin") == len(b"hello world")


def test_read_from_offset_limited_by_length(backend):
    backend.write("/file.bin", 0, b"abcdefgh")
    assert backend.read("/file.bin", 2, 3) == b"cde"
    assert backend.read("/file.bin", 6, 10) == b"gh"
    assert backend.read("/file.bin", 8, 10) == b""


def test_write_at_offset_extends(backend):
    backend.write("f", 0, b"abc")
    backend.write("f", 3, b"def")
    assert backend.read("f", 0, 100) == b"abcdef"
    assert backend.filelen("f") == 6


def test_write_at_zero_truncates(backend, tmp_path):
    (tmp_path / "f").write_bytes(b"a much longer old content")
    backend.write("f", 0, b"new")
    assert backend.read("f", 0, 100) == b"new"
    assert backend.filelen("f") == 3


def test_filelen_missing_file(backend):
    with pytest.raises(MgmtError) as info:
        backend.filelen("/missing")
    assert info.value.code is MgmtErr.EUNKNOWN


def test_filelen_of_directory(backend, tmp_path):
    (tmp_path / "sub").mkdir()
    with pytest.raises(MgmtError) as info:
        backend.filelen("/sub")
    assert info.value.code is MgmtErr.EUNKNOWN


def test_read_missing_file(backend):
    with pytest.raises(MgmtError) as info:
        backend.read("/missing", 0, 4)
    assert info.value.code is MgmtErr.ENOENT


def test_write_into_missing_directory(backend):
    with pytest.raises(MgmtError) as info:
        backend.write("/no/such/dir/f", 0, b"x")
    assert info.value.code is MgmtErr.EUNKNOWN


def test_path_outside_root_rejected(backend):
    with pytest.raises(MgmtError) as info:
        backend.read("../outside", 0, 4)
    assert info.value.code is MgmtErr.EINVAL