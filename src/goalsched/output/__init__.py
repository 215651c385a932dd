"""Output generation for compatibility results (text, PDF)."""

from goalsched.output.pdf_generator import PDFGenerator
from goalsched.output.report_generator import ReportGenerator

__all__ = [
    "PDFGenerator",
    "ReportGenerator",
]
