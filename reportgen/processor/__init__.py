"""Source file processing for the report generator.

Modules:
    ingestion: Classify uploaded files and normalize them into prompt
        fragments (inline binary or inline text).
"""

from .ingestion import (
    FileKind,
    Fragment,
    InlineBinary,
    InlineText,
    NormalizationResult,
    UploadedFile,
    classify,
    normalize_file,
    normalize_files,
    spreadsheet_to_text,
)

__all__ = [
    "FileKind",
    "Fragment",
    "InlineBinary",
    "InlineText",
    "NormalizationResult",
    "UploadedFile",
    "classify",
    "normalize_file",
    "normalize_files",
    "spreadsheet_to_text",
]
