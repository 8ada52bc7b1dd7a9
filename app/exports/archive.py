"""Minimal ZIP writer: every entry is stored uncompressed.

Layout per entry is a local file header followed by the raw bytes; the central
directory and the end-of-central-directory record follow all entries.
"""

import struct
from dataclasses import dataclass
from typing import Iterable, List

LOCAL_FILE_HEADER_SIGNATURE = 0x04034B50
CENTRAL_DIRECTORY_SIGNATURE = 0x02014B50
END_OF_CENTRAL_DIRECTORY_SIGNATURE = 0x06054B50
ZIP_VERSION = 20
METHOD_STORED = 0
# General purpose bit 11: file name is UTF-8
FLAG_UTF8_NAME = 0x0800


@dataclass(frozen=True)
class ArchiveEntry:
    name: str
    data: bytes


def _build_crc_table() -> List[int]:
    table = []
    for i in range(256):
        c = i
        for _ in range(8):
            c = (0xEDB88320 ^ (c >> 1)) if c & 1 else (c >> 1)
        table.append(c)
    return table


CRC_TABLE = _build_crc_table()


def crc32(data: bytes) -> int:
    crc = 0xFFFFFFFF
    for byte in data:
        crc = CRC_TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ 0xFFFFFFFF


def _name_flags(name: bytes) -> int:
    return 0 if name.isascii() else FLAG_UTF8_NAME


def _local_header(name: bytes, crc: int, size: int) -> bytes:
    return struct.pack(
        "<IHHHHHIIIHH",
        LOCAL_FILE_HEADER_SIGNATURE,
        ZIP_VERSION,
        _name_flags(name),
        METHOD_STORED,
        0,  # mod time
        0,  # mod date
        crc,
        size,
        size,
        len(name),
        0,  # extra length
    ) + name


def _central_header(name: bytes, crc: int, size: int, offset: int) -> bytes:
    return struct.pack(
        "<IHHHHHHIIIHHHHHII",
        CENTRAL_DIRECTORY_SIGNATURE,
        ZIP_VERSION,  # version made by
        ZIP_VERSION,  # version needed
        _name_flags(name),
        METHOD_STORED,
        0,
        0,
        crc,
        size,
        size,
        len(name),
        0,  # extra length
        0,  # comment length
        0,  # disk number start
        0,  # internal attributes
        0,  # external attributes
        offset,
    ) + name


def create_zip(entries: Iterable[ArchiveEntry]) -> bytes:
    local_parts: List[bytes] = []
    central_parts: List[bytes] = []
    offset = 0
    count = 0

    for entry in entries:
        name = entry.name.encode("utf-8")
        data = bytes(entry.data)
        crc = crc32(data)
        size = len(data)

        header = _local_header(name, crc, size)
        local_parts.append(header)
        local_parts.append(data)
        central_parts.append(_central_header(name, crc, size, offset))
        offset += len(header) + size
        count += 1

    central_directory = b"".join(central_parts)
    end_of_central = struct.pack(
        "<IHHHHIIH",
        END_OF_CENTRAL_DIRECTORY_SIGNATURE,
        0,
        0,
        count,
        count,
        len(central_directory),
        offset,
        0,
    )
    return b"".join(local_parts) + central_directory + end_of_central
