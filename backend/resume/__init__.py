"""
Résumé module: PDF text extraction and candidate detail pre-fill.
"""

from .extractors import DocumentFieldExtractor, document_extractor, extract_pdf_text
from .intake import ResumeIntake

__all__ = ['DocumentFieldExtractor', 'document_extractor', 'extract_pdf_text', 'ResumeIntake']
