from __future__ import annotations

import random
from pathlib import Path

import pytest

from hexedit.core.errors import FileIOError
from hexedit.core.io import InvalidOffset, FileCache


def make_fixture_file(tmp_path: Path, size: int = 5000) -> Path:
    # Deterministic content: 0..255 repeating
    data = bytes(i % 256 for i in range(size))
    p = tmp_path / "fixture.bin"
    p.write_bytes(data)
    return p


def test_reads_match_direct_reads(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=20000)
    raw = path.read_bytes()
    rng = random.Random(1234)
    with open(path, "rb") as fh:
        cache = FileCache(fh, len(raw), cache_size=512)
        for _ in range(300):
            off = rng.randrange(0, len(raw))
            ln = rng.choice([1, 2, 16, 100, 511, 512, 600, 4096])
            assert cache.read(off, ln) == raw[off : off + ln]


def test_read_past_eof_truncated(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=4097)
    with open(path, "rb") as fh:
        cache = FileCache(fh, 4097)
        start = cache.size - 10
        out = cache.read(start, 100)
        assert len(out) == 10
        assert out == bytes(i % 256 for i in range(start, cache.size))
        # Offset exactly at EOF returns empty
        assert cache.read(cache.size, 10) == b""
        assert cache.read(5, 0) == b""


def test_invalid_negative_offset_raises(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=100)
    with open(path, "rb") as fh:
        cache = FileCache(fh, 100)
        with pytest.raises(InvalidOffset):
            cache.read(-1, 1)
        with pytest.raises(InvalidOffset):
            cache.byte_at(-5)
        with pytest.raises(InvalidOffset):
            cache.read(0, -1)


def test_byte_at_behavior(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=1024)
    with open(path, "rb") as fh:
        cache = FileCache(fh, 1024)
        assert cache.byte_at(0) == 0
        assert cache.byte_at(255) == 255
        assert cache.byte_at(256) == 0
        # At EOF returns None
        assert cache.byte_at(cache.size) is None


def test_window_refills_only_when_needed(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=5000)
    with open(path, "rb") as fh:
        cache = FileCache(fh, 5000)
        cache.read(0, 16)
        assert cache.refills == 1
        assert cache.window == (0, 4096)
        cache.read(100, 16)
        cache.read(4080, 16)
        assert cache.refills == 1
        # straddles the window end
        cache.read(4090, 16)
        assert cache.refills == 2
        assert cache.window == (4090, 910)
        # larger than the window size
        assert len(cache.read(0, 5000)) == 5000
        assert cache.window == (0, 5000)
        assert cache.refills == 3


def test_invalidate_forces_reread(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=64)
    with open(path, "r+b") as fh:
        cache = FileCache(fh, 64)
        assert cache.read(0, 4) == bytes([0, 1, 2, 3])
        fh.seek(0)
        fh.write(b"\xff")
        fh.flush()
        assert cache.read(0, 1) == b"\x00"
        cache.invalidate()
        assert cache.read(0, 1) == b"\xff"


def test_short_read_raises_file_error(tmp_path: Path) -> None:
    path = make_fixture_file(tmp_path, size=100)
    with open(path, "rb") as fh:
        cache = FileCache(fh, 200, path=str(path))
        with pytest.raises(FileIOError) as info:
            cache.read(150, 10)
        assert info.value.path == str(path)
        assert info.value.operation == "read"


def test_attach_switches_file(tmp_path: Path) -> None:
    a = tmp_path / "a.bin"
    b = tmp_path / "b.bin"
    a.write_bytes(b"AAAA")
    b.write_bytes(b"BBBBBB")
    with open(a, "rb") as fa, open(b, "rb") as fb:
        cache = FileCache(fa, 4)
        assert cache.read(0, 4) == b"AAAA"
        cache.attach(fb, 6)
        assert cache.size == 6
        assert cache.read(0, 10) == b"BBBBBB"
