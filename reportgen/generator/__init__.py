"""Presentation generator package — PPTX builder engine.

Consumes a ReportData to produce the six-slide report deck.

Modules:
    pptx_builder: Core PPTX generation
"""

from .pptx_builder import ReportDeckBuilder, build_report_deck, report_filename

__all__ = [
    "ReportDeckBuilder",
    "build_report_deck",
    "report_filename",
]
