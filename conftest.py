"""Pytest configuration — project root importable, plus shared stubs and documents."""

import io
import struct
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from lease_verifier.config import Settings  # noqa: E402
from lease_verifier.storage import TempDocumentStore  # noqa: E402


class StubUnderstandingClient:
    """Stands in for the understanding service — records every prompt it gets."""

    model = "stub-model"
    timeout_seconds = 1.0

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def invoke(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class CountingDocumentStore(TempDocumentStore):
    """Temp store that counts releases per handle and remembers every path."""

    def __init__(self, base_dir):
        super().__init__(base_dir)
        self.handles = []
        self.release_calls: dict[str, int] = {}

    def acquire(self, data, media_type):
        handle = super().acquire(data, media_type)
        self.handles.append(handle)
        return handle

    def release(self, handle):
        self.release_calls[handle.handle_id] = self.release_calls.get(handle.handle_id, 0) + 1
        super().release(handle)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    return Settings(_env_file=None, OPENAI_API_KEY=None, MIN_CONFIDENCE_SCORE=60)


@pytest.fixture
def stub_client_factory():
    return StubUnderstandingClient


@pytest.fixture
def counting_store(tmp_path) -> CountingDocumentStore:
    return CountingDocumentStore(tmp_path)


@pytest.fixture
def make_docx():
    """Build a real .docx in memory from lines of text."""

    def _make(*lines: str) -> bytes:
        import docx

        document = docx.Document()
        for line in lines:
            document.add_paragraph(line)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def blank_pdf() -> bytes:
    """A structurally valid one-page PDF with no text layer."""
    import pypdf

    writer = pypdf.PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


# ─── Legacy Word (.doc) builder ─────────────────────────────────────

_SECTOR = 512
_ENDOFCHAIN = 0xFFFFFFFE
_FREESECT = 0xFFFFFFFF
_FATSECT = 0xFFFFFFFD
_NOSTREAM = 0xFFFFFFFF
_OLE_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
_MIN_REGULAR_STREAM = 4096
_FIB_SIZE = 0x0800


def _dir_entry(name: str, kind: int, *, child=_NOSTREAM, right=_NOSTREAM,
               start=_ENDOFCHAIN, size=0) -> bytes:
    encoded = (name + "\0").encode("utf-16-le")
    return (
        encoded.ljust(64, b"\0")
        + struct.pack("<HBB3I", len(encoded), kind, 1, _NOSTREAM, right, child)
        + bytes(36)
        + struct.pack("<IQ", start, size)
    )


def build_compound_file(streams: dict[str, bytes]) -> bytes:
    """Write a version 3 OLE compound file holding the given top-level streams.

    Every stream is padded to the mini-stream cutoff so all of them live in
    regular sectors. Sector 0 is the FAT and sector 1 the directory.
    """
    names = sorted(streams, key=lambda n: (len(n), n.upper()))
    assert len(names) <= 3

    fat = [_FATSECT, _ENDOFCHAIN]
    body = bytearray()
    starts = {}
    for name in names:
        data = streams[name].ljust(_MIN_REGULAR_STREAM, b"\0")
        data += bytes(-len(data) % _SECTOR)
        count = len(data) // _SECTOR
        starts[name] = len(fat)
        fat.extend(range(len(fat) + 1, len(fat) + count))
        fat.append(_ENDOFCHAIN)
        body += data
    assert len(fat) <= _SECTOR // 4
    fat_sector = struct.pack(f"<{_SECTOR // 4}I", *fat, *([_FREESECT] * (_SECTOR // 4 - len(fat))))

    directory = _dir_entry("Root Entry", 5, child=1 if names else _NOSTREAM)
    for i, name in enumerate(names, start=1):
        right = i + 1 if i < len(names) else _NOSTREAM
        size = len(streams[name].ljust(_MIN_REGULAR_STREAM, b"\0"))
        directory += _dir_entry(name, 2, right=right, start=starts[name], size=size)
    while len(directory) < _SECTOR:
        directory += bytes(64) + struct.pack("<HBB3I", 0, 0, 0, _NOSTREAM, _NOSTREAM, _NOSTREAM) + bytes(48)

    header = bytearray(_SECTOR)
    header[0:8] = _OLE_MAGIC
    struct.pack_into("<5H", header, 24, 0x003E, 0x0003, 0xFFFE, 9, 6)
    struct.pack_into("<3I", header, 40, 0, 1, 1)
    struct.pack_into("<6I", header, 52, 0, _MIN_REGULAR_STREAM, _ENDOFCHAIN, 0, _ENDOFCHAIN, 0)
    struct.pack_into("<109I", header, 76, 0, *([_FREESECT] * 108))

    return bytes(header) + fat_sector + directory + bytes(body)


def build_legacy_doc(pieces, *, ccp_text=None, encrypted=False) -> bytes:
    """Build a Word 97-2003 .doc from (text, compressed) pieces.

    Compressed pieces are stored as cp1252 bytes, the rest as UTF-16LE.
    ``ccp_text`` defaults to the whole character stream.
    """
    data = bytearray()
    cps = [0]
    descriptors = []
    for text, compressed in pieces:
        offset = _FIB_SIZE + len(data)
        if compressed:
            data += text.encode("cp1252")
            fc = (offset * 2) | 0x40000000
        else:
            data += text.encode("utf-16-le")
            fc = offset
        cps.append(cps[-1] + len(text))
        descriptors.append(struct.pack("<HIH", 0, fc, 0))

    plc = struct.pack(f"<{len(cps)}I", *cps) + b"".join(descriptors)
    clx = b"\x02" + struct.pack("<I", len(plc)) + plc

    word = bytearray(_FIB_SIZE) + data
    flags = 0x0200 | (0x0100 if encrypted else 0)
    struct.pack_into("<HH", word, 0x00, 0xA5EC, 0x00C1)
    struct.pack_into("<H", word, 0x0A, flags)
    struct.pack_into("<i", word, 0x4C, cps[-1] if ccp_text is None else ccp_text)
    struct.pack_into("<II", word, 0x1A2, 0, len(clx))

    return build_compound_file({"WordDocument": bytes(word), "1Table": clx})


@pytest.fixture
def make_legacy_doc():
    """Build a genuine binary .doc whose body is the given paragraphs."""

    def _make(*paragraphs: str) -> bytes:
        body = "".join(p + "\r" for p in paragraphs)
        return build_legacy_doc([(body, True)])

    return _make


@pytest.fixture
def legacy_doc_builder():
    return build_legacy_doc


@pytest.fixture
def compound_file_builder():
    return build_compound_file
