"""Content type detection from leading bytes.

Only the first SNIFF_LEN bytes are examined. Unrecognized binary data is
application/octet-stream and unrecognized text is text/plain.
"""

from __future__ import annotations

SNIFF_LEN = 512

# Longest file extension accepted from a sniffed subtype.
MAX_EXTENSION_LEN = 4

_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
    (b"\x00\x00\x01\x00", "image/x-icon"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b\x08", "application/x-gzip"),
    (b"Rar!\x1a\x07", "application/x-rar-compressed"),
    (b"OggS\x00", "application/ogg"),
    (b"ID3", "audio/mpeg"),
    (b"fLaC", "audio/flac"),
    (b"\x1aE\xdf\xa3", "video/webm"),
    (b"\x00asm", "application/wasm"),
]

_HTML_PREFIXES = (b"<!doctype html", b"<html", b"<head", b"<body", b"<script")


def _riff_type(data: bytes) -> str | None:
    if not data.startswith(b"RIFF") or len(data) < 12:
        return None
    return {
        b"WEBP": "image/webp",
        b"WAVE": "audio/wave",
        b"AVI ": "video/avi",
    }.get(data[8:12])


def _is_mp4(data: bytes) -> bool:
    if len(data) < 12 or data[4:8] != b"ftyp":
        return False
    box_size = int.from_bytes(data[:4], "big")
    return box_size % 4 == 0 and box_size <= len(data) and data[8:11] != b"qt "


def _looks_binary(data: bytes) -> bool:
    return any(b <= 0x08 or b == 0x0B or 0x0E <= b <= 0x1A or 0x1C <= b <= 0x1F for b in data)


def detect_content_type(data: bytes) -> str:
    """Return the MIME type of the data, judging by its first 512 bytes."""
    head = data[:SNIFF_LEN]

    for signature, content_type in _SIGNATURES:
        if head.startswith(signature):
            return content_type

    riff = _riff_type(head)
    if riff:
        return riff
    if _is_mp4(head):
        return "video/mp4"

    text = head.lstrip(b"\t\n\x0c\r ")
    if text.lower().startswith(_HTML_PREFIXES):
        return "text/html; charset=utf-8"
    if text.startswith(b"<?xml"):
        return "text/xml; charset=utf-8"

    if _looks_binary(head):
        return "application/octet-stream"
    return "text/plain; charset=utf-8"


def extension_for(content_type: str) -> str | None:
    """File extension for a sniffed MIME type, or None if it is not usable.

    The extension is the MIME subtype. Types with parameters and subtypes
    longer than MAX_EXTENSION_LEN are rejected.
    """
    if ";" in content_type or "/" not in content_type:
        return None
    subtype = content_type.split("/", 1)[1].strip()
    if not subtype or len(subtype) > MAX_EXTENSION_LEN:
        return None
    return subtype
