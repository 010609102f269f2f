"""Shared fixtures for hycomab tests."""

from pathlib import Path

import numpy as np
import pytest

from hycomab.reader import record_elements


def b_file_text(header_lines, i_len, j_len, name, series):
    """
    Build the text of a .b file.

    ``series`` is a sequence of (time, span, min, max) tuples, one per record.
    A trailer line is appended after the records.
    """
    lines = list(header_lines)
    lines.append(f"i/jdm = {i_len} {j_len}")
    rows = list(series)
    # Trailer: one more line in the same layout
    last = rows[-1] if rows else (0.0, 0.0, 0.0, 0.0)
    rows.append((last[0] + last[1], last[1], last[2], last[3]))
    for time, span, vmin, vmax in rows:
        lines.append(f" {name}: dtime1,range = {time!r} {span!r} {vmin!r} {vmax!r}")
    return "\n".join(lines) + "\n"


def a_file_bytes(data):
    """Encode a (t, j, i) array as big-endian records padded to 4096 words."""
    data = np.asarray(data, dtype=np.float32)
    _, j_len, i_len = data.shape
    n_words = record_elements(j_len, i_len)
    out = bytearray()
    for record in data:
        # Copy bit patterns as integers so NaN payloads survive
        padded = np.zeros(n_words, dtype=">u4")
        padded[: j_len * i_len] = record.ravel().view(np.uint32)
        out += padded.tobytes()
    return bytes(out)


@pytest.fixture
def write_ab(tmp_path):
    """Factory writing an AB pair to tmp_path and returning the .b path."""

    def _write(
        data,
        name="airtmp",
        header_lines=("Test forcing", "Written by hycomab tests"),
        series=None,
        stem="forcing",
    ) -> Path:
        data = np.asarray(data, dtype=np.float32)
        t_len, j_len, i_len = data.shape
        if series is None:
            series = [
                (float(t), 1.0, float(data[t].min()), float(data[t].max()))
                for t in range(t_len)
            ]
        b_path = tmp_path / f"{stem}.b"
        b_path.write_text(b_file_text(header_lines, i_len, j_len, name, series))
        (tmp_path / f"{stem}.a").write_bytes(a_file_bytes(data))
        return b_path

    return _write


@pytest.fixture
def grid_data():
    """A (3, 5, 7) float32 array with distinct values."""
    return np.arange(3 * 5 * 7, dtype=np.float32).reshape(3, 5, 7) * 0.5 - 10.0
