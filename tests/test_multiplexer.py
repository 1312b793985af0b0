"""Tests for multiplexer.py: readiness-driven pipe drain."""

import os

import pytest

from command_utils.multiplexer import STDERR, STDOUT, StreamMultiplexer


def _is_closed(fd):
    try:
        os.fstat(fd)
    except OSError:
        return True
    return False


def _collect(mux):
    out = {}
    for label, chunk in mux:
        out.setdefault(label, []).append(chunk)
    return {label: b"".join(chunks) for label, chunks in out.items()}


def test_drains_both_pipes_until_eof():
    out_r, out_w = os.pipe()
    err_r, err_w = os.pipe()
    os.write(out_w, b"hello")
    os.write(err_w, b"world")
    os.close(out_w)
    os.close(err_w)

    mux = StreamMultiplexer()
    mux.add(out_r, STDOUT)
    mux.add(err_r, STDERR)
    assert _collect(mux) == {STDOUT: b"hello", STDERR: b"world"}
    assert mux.open_labels == []
    assert _is_closed(out_r)
    assert _is_closed(err_r)
    mux.close()


def test_eof_without_data_delivers_nothing():
    r, w = os.pipe()
    os.close(w)
    with StreamMultiplexer() as mux:
        mux.add(r, STDOUT)
        assert list(mux) == []
    assert _is_closed(r)


def test_chunks_are_never_empty():
    r, w = os.pipe()
    os.write(w, b"abc")
    os.close(w)
    with StreamMultiplexer() as mux:
        mux.add(r, STDOUT)
        chunks = [chunk for _, chunk in mux]
    assert chunks
    assert all(chunks)


def test_close_releases_open_descriptors():
    r, w = os.pipe()
    mux = StreamMultiplexer()
    mux.add(r, STDERR)
    assert mux.open_labels == [STDERR]
    mux.close()
    assert _is_closed(r)
    mux.close()
    os.close(w)


def test_descriptors_switched_to_nonblocking():
    r, w = os.pipe()
    with StreamMultiplexer() as mux:
        mux.add(r, STDOUT)
        assert os.get_blocking(r) is False
    os.close(w)


def test_no_watch_set_terminates_immediately():
    with StreamMultiplexer() as mux:
        assert list(mux) == []


@pytest.mark.parametrize("size", [1, 4096, 70000])
def test_per_stream_bytes_preserved(size):
    r, w = os.pipe()
    payload = bytes(range(256)) * (size // 256 + 1)
    payload = payload[:size]
    pid = os.fork()
    if pid == 0:
        os.close(r)
        os.write(w, payload)
        os._exit(0)
    os.close(w)
    with StreamMultiplexer() as mux:
        mux.add(r, STDOUT)
        data = b"".join(chunk for _, chunk in mux)
    os.waitpid(pid, 0)
    assert data == payload
