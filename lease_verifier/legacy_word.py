"""
Text recovery from legacy binary Word documents (Word 97-2003 ``.doc``).

A .doc file is an OLE compound file. The body text sits in the WordDocument
stream, split into pieces that are listed by the piece table (the CLX) in
the 0Table or 1Table stream. The File Information Block (FIB) at the start
of WordDocument says which table stream is live, where the CLX lives, and how
many characters belong to the main document.

Only the main document story is returned. Footnotes, headers and text boxes
follow it in the character stream and are dropped.
"""

from __future__ import annotations

import re
import struct
from pathlib import Path

import olefile

WORD_IDENT = 0xA5EC

# ─── FIB Offsets ─────────────────────────────────────────────────────

_FIB_FLAGS = 0x000A
_FIB_CCP_TEXT = 0x004C
_FIB_FC_CLX = 0x01A2
_FIB_MIN_SIZE = 0x01AA

_FLAG_ENCRYPTED = 0x0100
_FLAG_TABLE_1 = 0x0200

# ─── Piece Table ─────────────────────────────────────────────────────

_CLXT_PRC = 0x01
_CLXT_PCDT = 0x02
_PCD_SIZE = 8
_FC_COMPRESSED = 0x40000000
_FC_MASK = 0x3FFFFFFF

# Field instructions (e.g. PAGE, HYPERLINK ...) sit between 0x13 and 0x14
_FIELD_INSTRUCTION = re.compile("\x13[^\x13\x14\x15]*\x14")
_CONTROL_CHARS = str.maketrans({
    "\r": "\n",
    "\x0b": "\n",
    "\x0c": "\n",
    "\x07": "\t",
    "\x13": None,
    "\x14": None,
    "\x15": None,
})


class LegacyWordError(ValueError):
    """The file is an OLE container but not a readable Word 97-2003 document."""


def is_ole_file(path: Path) -> bool:
    return olefile.isOleFile(str(path))


def read_doc_text(path: Path) -> str:
    """Return the main document text of a binary .doc file.

    Raises:
        LegacyWordError: Missing streams, encrypted document, or a truncated
            or inconsistent FIB / piece table.
        OSError: The compound file itself is damaged.
    """
    with olefile.OleFileIO(str(path)) as ole:
        if not ole.exists("WordDocument"):
            raise LegacyWordError("Compound file has no WordDocument stream")
        word = ole.openstream("WordDocument").read()
        if len(word) < _FIB_MIN_SIZE:
            raise LegacyWordError("File Information Block is truncated")

        ident, = struct.unpack_from("<H", word, 0)
        if ident != WORD_IDENT:
            raise LegacyWordError(f"Not a Word document (wIdent=0x{ident:04X})")

        flags, = struct.unpack_from("<H", word, _FIB_FLAGS)
        if flags & _FLAG_ENCRYPTED:
            raise LegacyWordError("Document is password protected")

        table_name = "1Table" if flags & _FLAG_TABLE_1 else "0Table"
        if not ole.exists(table_name):
            raise LegacyWordError(f"Compound file has no {table_name} stream")
        table = ole.openstream(table_name).read()

    ccp_text, = struct.unpack_from("<i", word, _FIB_CCP_TEXT)
    fc_clx, lcb_clx = struct.unpack_from("<II", word, _FIB_FC_CLX)
    if lcb_clx == 0 or fc_clx + lcb_clx > len(table):
        raise LegacyWordError("Piece table lies outside the table stream")

    pieces = _read_piece_table(table[fc_clx : fc_clx + lcb_clx])
    return _clean(_read_pieces(word, pieces, ccp_text))


def _read_piece_table(clx: bytes) -> list[tuple[int, int, int, bool]]:
    """Return (cp_start, cp_end, byte_offset, compressed) for each piece."""
    pos = 0
    while pos < len(clx) and clx[pos] == _CLXT_PRC:
        cb_grpprl, = struct.unpack_from("<h", clx, pos + 1)
        if cb_grpprl < 0:
            raise LegacyWordError("Piece table property run has a negative size")
        pos += 3 + cb_grpprl

    if pos + 5 > len(clx) or clx[pos] != _CLXT_PCDT:
        raise LegacyWordError("Piece table not found in CLX")

    lcb, = struct.unpack_from("<I", clx, pos + 1)
    plc = clx[pos + 5 : pos + 5 + lcb]
    if len(plc) != lcb or lcb < 4 or (lcb - 4) % (4 + _PCD_SIZE):
        raise LegacyWordError("Piece table is malformed")

    count = (lcb - 4) // (4 + _PCD_SIZE)
    cps = struct.unpack_from(f"<{count + 1}I", plc, 0)
    pcd_base = 4 * (count + 1)

    pieces = []
    for i in range(count):
        _, fc_raw, _ = struct.unpack_from("<HIH", plc, pcd_base + i * _PCD_SIZE)
        compressed = bool(fc_raw & _FC_COMPRESSED)
        fc = fc_raw & _FC_MASK
        offset = fc // 2 if compressed else fc
        pieces.append((cps[i], cps[i + 1], offset, compressed))
    return pieces


def _read_pieces(word: bytes, pieces: list[tuple[int, int, int, bool]], ccp_text: int) -> str:
    parts = []
    for cp_start, cp_end, offset, compressed in pieces:
        if cp_start >= ccp_text:
            break
        count = min(cp_end, ccp_text) - cp_start
        if count <= 0:
            continue

        width = 1 if compressed else 2
        raw = word[offset : offset + count * width]
        if len(raw) != count * width:
            raise LegacyWordError("Text piece runs past the end of WordDocument")
        parts.append(raw.decode("cp1252" if compressed else "utf-16-le", errors="replace"))
    return "".join(parts)


def _clean(text: str) -> str:
    text = _FIELD_INSTRUCTION.sub("", text).translate(_CONTROL_CHARS)
    lines = [line.rstrip() for line in text.split("\n")]
    return "\n".join(line for line in lines if line)
