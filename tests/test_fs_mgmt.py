import pytest

from cborattr.cbor import Encoder, decode
from cborattr.fs_backend import DirectoryBackend, MgmtErr, MgmtError, UnsupportedBackend
from cborattr.fs_mgmt import FsManager, FsMgmtConfig, dl_chunk_size


def _request(**fields):
    enc = Encoder()
    enc.begin_map()
    for key, value in fields.items():
        enc.text_string(key)
        if isinstance(value, bytes):
            enc.byte_string(value)
        elif isinstance(value, str):
            enc.text_string(value)
        else:
            enc.uint(value)
    enc.end()
    return decode(enc.getvalue())


@pytest.fixture
def manager(tmp_path):
    config = FsMgmtConfig(dl_chunk_size=4, ul_chunk_size=8, path_size=16)
    return FsManager(DirectoryBackend(tmp_path), config)


def test_dl_chunk_size_default():
    assert dl_chunk_size(100, 1, None) == 70


def test_dl_chunk_size_requested_fits():
    default = dl_chunk_size(512, 5, None)
    assert dl_chunk_size(512, 5, default) == default
    assert dl_chunk_size(512, 5, 16) == 16


def test_dl_chunk_size_requested_too_big_falls_back():
    default = dl_chunk_size(512, 5, None)
    assert dl_chunk_size(512, 5, default + 1) == default


def test_dl_chunk_size_shrinks_with_offset_width():
    assert dl_chunk_size(512, 6, None) < dl_chunk_size(512, 5, None)


def test_dl_chunk_size_buffer_too_small():
    with pytest.raises(ValueError):
        dl_chunk_size(10, 5, None)


def test_config_rejects_zero():
    with pytest.raises(ValueError):
        FsMgmtConfig(dl_chunk_size=0)


def test_download_first_chunk_has_length(manager, tmp_path):
    (tmp_path / "f").write_bytes(b"0123456789")
    rsp = manager.download(_request(off=0, name="/f"))
    assert rsp == {"off": 0, "data": b"0123", "rc": 0, "len": 10}
    assert list(rsp) == ["off", "data", "rc", "len"]


def test_download_later_chunk(manager, tmp_path):
    (tmp_path / "f").write_bytes(b"0123456789")
    rsp = manager.download(_request(off=4, name="/f"))
    assert rsp == {"off": 4, "data": b"4567", "rc": 0}


def test_download_accepts_raw_bytes(manager, tmp_path):
    (tmp_path / "f").write_bytes(b"ab")
    enc = Encoder()
    enc.begin_map()
    enc.text_string("name")
    enc.text_string("f")
    enc.end()
    rsp = manager.download(enc.getvalue())
    assert rsp["data"] == b"ab"
    assert rsp["off"] == 0


def test_download_missing_name(manager):
    with pytest.raises(MgmtError) as info:
        manager.download(_request(off=0))
    assert info.value.code is MgmtErr.EINVAL


def test_download_max_offset_rejected(manager):
    with pytest.raises(MgmtError) as info:
        manager.download(_request(off=(1 << 64) - 1, name="f"))
    assert info.value.code is MgmtErr.EINVAL


def test_download_not_a_map(manager):
    enc = Encoder()
    enc.uint(5)
    with pytest.raises(MgmtError) as info:
        manager.download(enc.getvalue())
    assert info.value.code is MgmtErr.EINVAL


def test_download_missing_file_errors(manager):
    with pytest.raises(MgmtError) as first:
        manager.download(_request(off=0, name="/nope"))
    assert first.value.code is MgmtErr.EUNKNOWN
    with pytest.raises(MgmtError) as later:
        manager.download(_request(off=4, name="/nope"))
    assert later.value.code is MgmtErr.ENOENT


def test_download_unsupported_backend():
    mgr = FsManager(UnsupportedBackend())
    with pytest.raises(MgmtError) as info:
        mgr.download(_request(off=0, name="f"))
    assert info.value.code is MgmtErr.ENOTSUP


def test_upload_in_chunks(manager, tmp_path):
    rsp = manager.upload(_request(off=0, data=b"hello ", len=11, name="/up"))
    assert rsp == {"rc": 0, "off": len(b"hello ")}
    assert manager.uploading
    rsp = manager.upload(_request(off=6, data=b"world", name="/up"))
    assert rsp == {"rc": 0, "off": 11}
    assert not manager.uploading
    assert (tmp_path / "up").read_bytes() == b"hello world"


def test_upload_wrong_offset_reports_expected(manager, tmp_path):
    manager.upload(_request(off=0, data=b"abc", len=6, name="up"))
    rsp = manager.upload(_request(off=5, data=b"def", name="up"))
    assert rsp == {"rc": int(MgmtErr.EINVAL), "off": 3}
    assert (tmp_path / "up").read_bytes() == b"abc"


def test_upload_without_start(manager):
    with pytest.raises(MgmtError) as info:
        manager.upload(_request(off=3, data=b"abc", name="up"))
    assert info.value.code is MgmtErr.EINVAL


def test_upload_first_chunk_needs_length(manager):
    with pytest.raises(MgmtError) as info:
        manager.upload(_request(off=0, data=b"abc", name="up"))
    assert info.value.code is MgmtErr.EINVAL


def test_upload_needs_offset_and_name(manager):
    with pytest.raises(MgmtError) as no_off:
        manager.upload(_request(data=b"abc", len=3, name="up"))
    assert no_off.value.code is MgmtErr.EINVAL
    with pytest.raises(MgmtError) as no_name:
        manager.upload(_request(off=0, data=b"abc", len=3))
    assert no_name.value.code is MgmtErr.EINVAL


def test_upload_data_beyond_length(manager):
    with pytest.raises(MgmtError) as info:
        manager.upload(_request(off=0, data=b"abcdef", len=3, name="up"))
    assert info.value.code is MgmtErr.EINVAL


def test_upload_chunk_too_large(manager):
    with pytest.raises(MgmtError) as info:
        manager.upload(_request(off=0, data=b"x" * 9, len=9, name="up"))
    assert info.value.code is MgmtErr.EINVAL


def test_upload_name_too_long(manager):
    with pytest.raises(MgmtError) as info:
        manager.upload(_request(off=0, data=b"a", len=1, name="n" * 17))
    assert info.value.code is MgmtErr.EINVAL


def test_upload_empty_file_completes(manager, tmp_path):
    rsp = manager.upload(_request(off=0, data=b"", len=0, name="empty"))
    assert rsp == {"rc": 0, "off": 0}
    assert not manager.uploading
    assert not (tmp_path / "empty").exists()


def test_upload_then_download_round_trip(manager):
    manager.upload(_request(off=0, data=b"abcdefg", len=7, name="rt"))
    first = manager.download(_request(off=0, name="rt"))
    second = manager.download(_request(off=4, name="rt"))
    assert first["len"] == 7
    assert first["data"] + second["data"] == b"abcdefg"