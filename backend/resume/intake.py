"""
Asynchronous résumé intake. One extraction runs per upload; a newer upload
supersedes any extraction still in flight.
"""
import asyncio
import logging
from typing import Optional

from models.schemas import CandidateDetails
from resume.extractors import DocumentFieldExtractor, document_extractor

logger = logging.getLogger(__name__)


class ResumeIntake:
    """
    Runs PDF extraction off the event loop and keeps only the latest result.
    """

    def __init__(self, extractor: DocumentFieldExtractor = document_extractor):
        self.extractor = extractor
        self._current: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> bool:
        return self._current is not None and not self._current.done()

    async def process(self, data: bytes) -> Optional[CandidateDetails]:
        """
        Extract candidate details from an uploaded PDF.

        Args:
            data: Raw PDF bytes

        Returns:
            Extracted details, or None if a newer upload superseded this one
        """
        if self.in_flight:
            logger.info("New upload received, superseding in-flight extraction")
            self._current.cancel()

        task = asyncio.ensure_future(asyncio.to_thread(self.extractor.extract_from_pdf, data))
        self._current = task
        try:
            return await task
        except asyncio.CancelledError:
            if self._current is not task:
                return None
            raise
        finally:
            if self._current is task:
                self._current = None
