"""
Candidate detail extraction from uploaded résumés.
Pulls a best-guess name, email and phone from the document text layer.
Results only pre-fill the detail collection flow and are never authoritative.
"""
import io
import re
import logging
from typing import Callable, Optional

from PyPDF2 import PdfReader

from models.schemas import CandidateDetails

logger = logging.getLogger(__name__)


def extract_pdf_text(data: bytes) -> str:
    """
    Extract the plain text layer of a PDF.

    Each page's text items are joined by single spaces and the page
    is terminated by a newline.

    Args:
        data: Raw PDF bytes

    Returns:
        Concatenated page text
    """
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        items = (page.extract_text() or "").split()
        pages.append(" ".join(items) + "\n")
    return "".join(pages)


class DocumentFieldExtractor:
    """
    Pattern-based extraction of candidate contact details.
    """

    # Two capitalized words at the very start of the document
    NAME_PATTERN = re.compile(r"^([A-Z][a-z]+)\s([A-Z][a-z]+)")

    EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+")

    # 10 digits, optional area-code parentheses, '-', '.' or space separators
    PHONE_PATTERN = re.compile(r"\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}", re.ASCII)

    def __init__(self, text_reader: Callable[[bytes], str] = extract_pdf_text):
        self.text_reader = text_reader

    @staticmethod
    def _first_match(pattern: re.Pattern, text: str) -> Optional[str]:
        match = pattern.search(text)
        return match.group(0) if match else None

    def extract(self, text: str) -> CandidateDetails:
        """
        Derive best-guess details from document text.

        Args:
            text: Full extracted document text

        Returns:
            Details with unmatched fields left absent
        """
        if not isinstance(text, str) or not text:
            return CandidateDetails()

        details = CandidateDetails(
            name=self._first_match(self.NAME_PATTERN, text),
            email=self._first_match(self.EMAIL_PATTERN, text),
            phone=self._first_match(self.PHONE_PATTERN, text),
        )
        found = [field for field, value in details.model_dump().items() if value]
        logger.info(f"Extracted {len(found)} candidate details from document: {found}")
        return details

    def extract_from_pdf(self, data: bytes) -> CandidateDetails:
        """Extract details from raw PDF bytes; unreadable documents yield no details."""
        try:
            text = self.text_reader(data)
        except Exception as e:
            logger.error(f"Failed to extract text from PDF: {e}")
            return CandidateDetails()
        return self.extract(text)


# Global instance
document_extractor = DocumentFieldExtractor()
