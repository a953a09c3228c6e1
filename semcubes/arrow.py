"""Decoding of Arrow IPC stream buffers into raw result rows."""

from __future__ import annotations

from typing import Any

import pyarrow as pa

from .errors import ArgumentError

__all__ = ["parse_rows"]


def parse_rows(buffer: bytes | bytearray | memoryview | pa.Buffer) -> list[dict[str, Any]]:
    """Parse an Arrow IPC stream `buffer` into a list of row dictionaries,
    one key per schema field. An empty buffer yields no rows.

    Raises:
        ArgumentError: if the buffer is not a valid Arrow IPC stream.
    """
    if len(buffer) == 0:
        return []

    try:
        with pa.ipc.open_stream(buffer) as reader:
            table = reader.read_all()
    except (pa.ArrowInvalid, OSError) as e:
        raise ArgumentError(f"Invalid Arrow IPC stream: {e}", cause=e) from e

    names = table.schema.names
    columns = [table.column(i).to_pylist() for i in range(table.num_columns)]

    return [
        {name: column[index] for name, column in zip(names, columns)}
        for index in range(table.num_rows)
    ]
