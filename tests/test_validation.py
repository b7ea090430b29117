# -*- coding: utf-8 -*-
"""Tests for signature and PNG structure validation."""

from __future__ import annotations

import asyncio

import pytest

from conftest import FailingByteSource, RecordingByteSource, make_jpeg, make_png, raw_file
from image_b64.conversion.errors import ConverterError, ErrorKind, ReadError
from image_b64.conversion.models import ImageFormat, RawFile
from image_b64.conversion.validation import (
    FileValidator,
    check_png_structure,
    declared_format,
    identify_format,
)


@pytest.mark.parametrize("tail", [b"", b"\x00", b"\xe0\x00\x10JFIF", b"\x89PNG\r\n\x1a\n"])
def test_identify_format_jpeg_by_first_three_bytes(tail: bytes) -> None:
    assert identify_format(b"\xff\xd8\xff" + tail) is ImageFormat.JPEG


def test_identify_format_png(png_bytes: bytes) -> None:
    assert identify_format(png_bytes) is ImageFormat.PNG
    assert identify_format(png_bytes[:8]) is ImageFormat.PNG


@pytest.mark.parametrize("data", [b"", b"\xff\xd8", b"\x00\x00\x00", b"\x89PNG\r\n\x1a", b"GIF89a"])
def test_identify_format_unknown_never_raises(data: bytes) -> None:
    assert identify_format(data) is ImageFormat.UNKNOWN


def test_check_png_structure_accepts_well_formed_png(png_bytes: bytes) -> None:
    assert check_png_structure(png_bytes) is True


def test_check_png_structure_rejects_wrong_first_chunk(png_bytes: bytes) -> None:
    broken = png_bytes[:12] + b"IDAT" + png_bytes[16:]
    assert check_png_structure(broken) is False


def test_check_png_structure_rejects_missing_iend(png_bytes: bytes) -> None:
    assert check_png_structure(png_bytes[:-12]) is False


def test_check_png_structure_ignores_iend_far_from_end(png_bytes: bytes) -> None:
    # an IEND marker buried before the final chunk does not count
    truncated = png_bytes[:40] + b"IEND" + png_bytes[44:-12] + b"\x00" * 12
    assert check_png_structure(truncated) is False


def test_check_png_structure_rejects_short_and_non_png() -> None:
    assert check_png_structure(b"\x89PNG\r\n\x1a\n") is False
    assert check_png_structure(make_jpeg()) is False


@pytest.mark.parametrize(
    "media_type,expected",
    [("image/jpeg", ImageFormat.JPEG), ("image/jpg", ImageFormat.JPEG), ("IMAGE/PNG", ImageFormat.PNG), ("image/gif", ImageFormat.UNKNOWN)],
)
def test_declared_format(media_type: str, expected: ImageFormat) -> None:
    assert declared_format(media_type) is expected


def test_oversized_file_rejected_before_any_read() -> None:
    source = RecordingByteSource(make_png())
    file = RawFile(name="big.png", media_type="image/png", size=10 * 1024 * 1024 + 1, source=source)

    outcome = asyncio.run(FileValidator().validate(file))

    assert not outcome.valid
    assert outcome.reason is ErrorKind.SIZE_LIMIT_EXCEEDED
    assert outcome.message == "File must be at most 10MB"
    assert source.reads == []


def test_unsupported_media_type_rejected() -> None:
    outcome = asyncio.run(FileValidator().validate(raw_file(b"GIF89a", "image/gif", "a.gif")))
    assert outcome.reason is ErrorKind.UNSUPPORTED_MEDIA_TYPE


def test_jpeg_declared_with_zero_bytes_is_signature_mismatch() -> None:
    outcome = asyncio.run(FileValidator().validate(raw_file(b"\x00\x00\x00" * 10, "image/jpeg", "a.jpg")))
    assert outcome.reason is ErrorKind.SIGNATURE_MISMATCH
    assert outcome.message == "The file does not have a valid JPG structure"


def test_png_declared_but_jpeg_bytes_is_signature_mismatch() -> None:
    outcome = asyncio.run(FileValidator().validate(raw_file(make_jpeg(), "image/png")))
    assert outcome.reason is ErrorKind.SIGNATURE_MISMATCH
    assert outcome.message == "The PNG file header is corrupted"


def test_jpeg_validation_reads_only_prefix(jpeg_bytes: bytes) -> None:
    file = raw_file(jpeg_bytes, "image/jpeg", "a.jpg")

    outcome = asyncio.run(FileValidator().validate(file))

    assert outcome.valid
    assert file.source.reads == [(0, 3)]


def test_png_validation_reads_eight_byte_signature_then_body(png_bytes: bytes) -> None:
    file = raw_file(png_bytes)

    assert asyncio.run(FileValidator().validate(file)).valid
    assert file.source.reads == [(0, 8), (0, None)]


def test_jpeg_declared_png_bytes_is_signature_mismatch(png_bytes: bytes) -> None:
    outcome = asyncio.run(FileValidator().validate(raw_file(png_bytes, "image/jpeg", "a.jpg")))
    assert outcome.reason is ErrorKind.SIGNATURE_MISMATCH


def test_png_structural_defect_reported(png_bytes: bytes) -> None:
    outcome = asyncio.run(FileValidator().validate(raw_file(png_bytes[:-12])))
    assert outcome.reason is ErrorKind.STRUCTURAL_DEFECT


def test_valid_png_passes(png_bytes: bytes) -> None:
    assert asyncio.run(FileValidator().validate(raw_file(png_bytes))).valid


def test_read_failure_raises_read_error() -> None:
    file = RawFile(name="a.png", media_type="image/png", size=100, source=FailingByteSource())
    with pytest.raises(ReadError) as exc:
        asyncio.run(FileValidator().validate(file))
    assert exc.value.kind is ErrorKind.READ_ERROR
    assert isinstance(exc.value.__cause__, PermissionError)


def test_custom_limit_message() -> None:
    validator = FileValidator(max_bytes=1024 * 1024)
    outcome = validator.check_declared(raw_file(make_png(1024 * 1024 + 10)))
    assert outcome.message == "File must be at most 1MB"


def test_raise_if_invalid_maps_to_exception_type() -> None:
    outcome = FileValidator().check_declared(raw_file(b"x", "text/plain", "a.txt"))
    with pytest.raises(ConverterError) as exc:
        outcome.raise_if_invalid()
    assert exc.value.kind is ErrorKind.UNSUPPORTED_MEDIA_TYPE


def test_make_png_helper_is_valid() -> None:
    assert len(make_png()) == 2048
