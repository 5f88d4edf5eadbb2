"""Tests for paragraph chunking, PDF run decoding and upload type detection."""

from pathlib import Path

from ragctl.src.utils.text_utils import decode_text_run, is_pdf, is_supported_file, split_into_chunks


class TestSplitIntoChunks:
    """Test blank-line chunking with the 50-character floor."""

    def test_scenario_drops_short_segment(self) -> None:
        """Should keep the two long paragraphs and drop 'Short'."""
        first = "a" * 60
        second = "b" * 80

        chunks = split_into_chunks(f"{first}\n\nShort\n\n{second}")

        assert chunks == [first, second]

    def test_exactly_fifty_chars_is_dropped(self) -> None:
        """Segments must be strictly longer than the floor."""
        assert split_into_chunks("x" * 50) == []
        assert split_into_chunks("x" * 51) == ["x" * 51]

    def test_length_measured_after_trim(self) -> None:
        """Surrounding whitespace does not count towards the floor."""
        padded = "   " + "y" * 50 + "   \n"
        assert split_into_chunks(padded) == []

    def test_kept_segments_are_not_trimmed(self) -> None:
        """Kept chunks are returned exactly as split."""
        segment = "\n  " + "z" * 55 + "  "
        assert split_into_chunks(segment + "\n\n" + "tiny") == [segment]

    def test_single_newlines_do_not_split(self) -> None:
        text = ("line one of a paragraph\n" * 3).strip()
        assert split_into_chunks(text) == [text]

    def test_empty_text(self) -> None:
        assert split_into_chunks("") == []

    def test_custom_floor(self) -> None:
        assert split_into_chunks("abcdef\n\nab", min_chars=3) == ["abcdef"]


class TestDecodeTextRun:
    """Test percent-decoding with raw fallback."""

    def test_decodes_percent_encoded_utf8(self) -> None:
        assert decode_text_run("Caf%C3%A9%20au%20lait") == "Café au lait"

    def test_plain_text_unchanged(self) -> None:
        assert decode_text_run("Hello world") == "Hello world"

    def test_invalid_utf8_falls_back_to_raw(self) -> None:
        assert decode_text_run("bad%E0%A4") == "bad%E0%A4"

    def test_lone_percent_left_alone(self) -> None:
        assert decode_text_run("100%") == "100%"

    def test_malformed_escape_keeps_whole_run_raw(self) -> None:
        """A bad escape anywhere means no escape in the run is decoded."""
        assert decode_text_run("%41 100%") == "%41 100%"
        assert decode_text_run("%41%4G") == "%41%4G"


class TestUploadTypes:
    """Test PDF detection and supported suffixes."""

    def test_pdf_by_content_type(self) -> None:
        assert is_pdf("upload.bin", "application/pdf")

    def test_pdf_by_extension(self) -> None:
        assert is_pdf("report.pdf")
        assert is_pdf("REPORT.PDF", "application/octet-stream")

    def test_text_is_not_pdf(self) -> None:
        assert not is_pdf("notes.md", "text/markdown")

    def test_supported_files(self) -> None:
        assert is_supported_file(Path("a.txt"))
        assert is_supported_file(Path("b.MD"))
        assert is_supported_file(Path("c.json"))
        assert is_supported_file(Path("d.pdf"))
        assert not is_supported_file(Path("e.docx"))
