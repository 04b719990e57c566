"""
Tests for Primary Text Extraction
==================================
Plain text, PDF and DOCX extraction, and the failure modes that must never
produce a partial result.
"""
import fitz  # PyMuPDF
import pytest

from syllabus_parser.core.exceptions import ExtractionFailed
from syllabus_parser.models.document import DocumentBlob, DocumentFormat, SourceMethod
from syllabus_parser.utils.extractors.text_extractor import TextExtractor, decode_text


@pytest.fixture
def extractor():
    return TextExtractor()


class TestPlainText:

    @pytest.mark.parametrize("text", [
        "CS 101\nIntro to Programming\n",
        "  leading and trailing whitespace  \n\n",
        "Unicode: café, naïve, 東京, emoji 📚",
        "",
    ])
    def test_round_trip_identity(self, extractor, text):
        """Extracted text equals the decoded input, verbatim."""
        blob = DocumentBlob(data=text.encode("utf-8"), mime_type="text/plain", filename="s.txt")

        extracted = extractor.extract(blob, DocumentFormat.TEXT)

        assert extracted.text == text
        assert extracted.page_count == 1
        assert extracted.source_method == SourceMethod.PRIMARY

    def test_invalid_utf8_falls_back_to_latin1(self):
        data = "Professor Müller".encode("latin-1")
        assert decode_text(data) == "Professor Müller"


class TestPDF:

    def test_per_page_text_and_yield(self, extractor, make_pdf):
        pages = ["Course overview and policies", "Week 1 reading: chapter one"]
        blob = DocumentBlob(data=make_pdf(pages), mime_type="application/pdf", filename="s.pdf")

        extracted = extractor.extract(blob, DocumentFormat.PDF)

        assert extracted.page_count == 2
        assert extracted.page_texts == pages
        assert extracted.per_page_yield == [len(p) for p in pages]
        assert "chapter one" in extracted.text

    def test_blank_page_has_zero_yield(self, extractor, make_pdf):
        blob = DocumentBlob(data=make_pdf(["Some text here", ""]), mime_type="application/pdf")

        extracted = extractor.extract(blob, DocumentFormat.PDF)

        assert extracted.per_page_yield[1] == 0

    def test_corrupt_pdf(self, extractor):
        blob = DocumentBlob(data=b"%PDF-1.4 this is not really a pdf", mime_type="application/pdf")

        with pytest.raises(ExtractionFailed) as exc_info:
            extractor.extract(blob, DocumentFormat.PDF)

        assert exc_info.value.alternatives

    def test_encrypted_pdf(self, extractor, make_pdf):
        doc = fitz.open(stream=make_pdf(["Secret syllabus"]), filetype="pdf")
        data = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw="owner", user_pw="user")
        doc.close()

        blob = DocumentBlob(data=data, mime_type="application/pdf")

        with pytest.raises(ExtractionFailed, match="password"):
            extractor.extract(blob, DocumentFormat.PDF)


class TestDocx:

    def test_paragraphs_joined_with_newlines(self, extractor, make_docx):
        blob = DocumentBlob(
            data=make_docx(["Course: Biology 200", "Instructor: Dr. Lee"]),
            filename="s.docx",
        )

        extracted = extractor.extract(blob, DocumentFormat.DOCX)

        assert extracted.text == "Course: Biology 200\nInstructor: Dr. Lee"
        assert extracted.page_count == 1

    def test_corrupt_docx(self, extractor):
        blob = DocumentBlob(data=b"PK\x03\x04 broken archive", filename="s.docx")

        with pytest.raises(ExtractionFailed) as exc_info:
            extractor.extract(blob, DocumentFormat.DOCX)

        assert exc_info.value.__cause__ is not None


class TestImage:

    def test_image_is_left_for_ocr(self, extractor):
        blob = DocumentBlob(data=b"\x89PNG...", mime_type="image/png", filename="scan.png")

        extracted = extractor.extract(blob, DocumentFormat.IMAGE)

        assert extracted.text == ""
        assert extracted.per_page_yield == [0]
