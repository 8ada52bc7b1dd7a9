import io
import os
import struct
import sys
import zipfile
import zlib

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from app.exports.archive import ArchiveEntry, create_zip, crc32


def test_crc32_matches_zlib():
    for data in (b"", b"a", b"hello, world", bytes(range(256)) * 4):
        assert crc32(data) == zlib.crc32(data)


def test_zip_is_readable_by_zipfile():
    entries = [
        ArchiveEntry(name="stock.csv", data=b"variant_id,quantity\nv1,12"),
        ArchiveEntry(name="empty.csv", data=b""),
        ArchiveEntry(name="attachments/a1-invoice.pdf", data=b"%PDF-1.4 fake"),
    ]
    archive = create_zip(entries)

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.testzip() is None
        assert zf.namelist() == ["stock.csv", "empty.csv", "attachments/a1-invoice.pdf"]
        for entry in entries:
            info = zf.getinfo(entry.name)
            assert info.compress_type == zipfile.ZIP_STORED
            assert info.file_size == len(entry.data)
            assert zf.read(entry.name) == entry.data


def test_empty_archive_is_only_end_record():
    archive = create_zip([])
    assert len(archive) == 22
    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == []


def test_non_ascii_names_are_flagged_utf8():
    entries = [
        ArchiveEntry(name="attachments/reçu.pdf", data=b"ok"),
        ArchiveEntry(name="stock.csv", data=b"x"),
    ]
    archive = create_zip(entries)

    with zipfile.ZipFile(io.BytesIO(archive)) as zf:
        assert zf.namelist() == ["attachments/reçu.pdf", "stock.csv"]
        assert zf.getinfo("attachments/reçu.pdf").flag_bits & 0x0800
        assert zf.getinfo("stock.csv").flag_bits == 0
        assert zf.read("attachments/reçu.pdf") == b"ok"

    # Local header of the first entry carries the same flag
    assert struct.unpack_from("<H", archive, 6)[0] == 0x0800
