"""Tests for note file extraction."""

import pytest

from studyforge.services.file_processor import (
    SUPPORTED_EXTENSIONS,
    UnsupportedFileTypeError,
    file_processor,
)


def test_markdown_is_decoded_and_titled_by_stem():
    result = file_processor.process_file("graphs.md", b"# Graphs\n\nBFS uses a queue.\n")

    assert result.file_type == "markdown"
    assert result.title == "graphs"
    assert result.content == "# Graphs\n\nBFS uses a queue."


def test_text_strips_control_characters():
    result = file_processor.process_file("os-notes.txt", b"Paging\x00 and segmentation\x07")

    assert result.file_type == "text"
    assert result.content == "Paging and segmentation"


def test_extension_is_case_insensitive():
    result = file_processor.process_file("README.TXT", b"hello")

    assert result.file_type == "text"
    assert result.title == "README"


def test_invalid_utf8_is_replaced_not_rejected():
    result = file_processor.process_file("notes.txt", b"caf\xe9 latte")

    assert result.content.startswith("caf")
    assert "latte" in result.content


@pytest.mark.parametrize("file_name,file_type", [("report.pdf", "pdf"), ("resume.docx", "docx")])
def test_binary_formats_get_placeholder_content(file_name, file_type):
    result = file_processor.process_file(file_name, b"%binary%")

    assert result.file_type == file_type
    assert result.title in result.content
    assert "%binary%" not in result.content


def test_unsupported_extension_raises():
    with pytest.raises(UnsupportedFileTypeError) as exc_info:
        file_processor.process_file("setup.exe", b"MZ")

    message = str(exc_info.value)
    assert ".exe" in message
    assert all(extension in message for extension in SUPPORTED_EXTENSIONS)


def test_file_without_extension_is_unsupported():
    with pytest.raises(UnsupportedFileTypeError):
        file_processor.process_file("Makefile", b"all:")
