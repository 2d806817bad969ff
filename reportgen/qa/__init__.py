"""QA validation package for the report generator.

Validates a generated deck against the ReportData it was built from —
checks slide count, dimensions, titles, table row counts, and multiplier
callouts.
"""

from .validator import (
    Issue,
    QAResult,
    ReportValidator,
    validate_presentation,
)

__all__ = [
    "Issue",
    "QAResult",
    "ReportValidator",
    "validate_presentation",
]
