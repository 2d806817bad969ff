"""Report extraction — sends source fragments to the model and parses
the structured answer into a ReportData.
"""

from .client import (
    CredentialMissingError,
    EmptyResponseError,
    ExtractionClient,
    ExtractionError,
    RetriesExhaustedError,
    extract_report,
    is_rate_limit_error,
)

__all__ = [
    "CredentialMissingError",
    "EmptyResponseError",
    "ExtractionClient",
    "ExtractionError",
    "RetriesExhaustedError",
    "extract_report",
    "is_rate_limit_error",
]
