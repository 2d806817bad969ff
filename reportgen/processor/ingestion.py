"""File normalization module for the report generator.

Turns each uploaded source file into exactly one prompt fragment:
- Images (image/*): inline binary, media type kept
- PDF (.pdf / application/pdf): inline binary, media type forced to PDF
- CSV / plain text (.csv / text/csv / text/plain): inline text with a
  ``[CSV Data: <name>]`` marker
- JSON (.json / application/json): inline text with a
  ``[JSON Data: <name>]`` marker
- Spreadsheets (.xlsx / .xls / *spreadsheet* / *excel*): the first sheets
  (3 by default) converted to comma-delimited text, each preceded by a
  ``--- Sheet: <name> ---`` separator, under an ``[Excel Data: <name>]``
  marker

Anything else is classified as unsupported: no fragment is produced and a
warning naming the file is returned to the caller instead.
"""

import io
import logging
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
DEFAULT_MEDIA_TYPE = "application/octet-stream"
DEFAULT_MAX_SHEETS = 3


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

class FileKind(Enum):
    """Closed classification of uploaded files."""
    IMAGE = "image"
    PDF = "pdf"
    CSV = "csv"
    JSON = "json"
    SPREADSHEET = "spreadsheet"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class UploadedFile:
    """An opaque uploaded file: its name, declared media type, and bytes."""
    name: str
    media_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        """Read a file from disk, guessing its media type from the name."""
        path = Path(path)
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            media_type=media_type or DEFAULT_MEDIA_TYPE,
            data=path.read_bytes(),
        )


@dataclass(frozen=True)
class InlineBinary:
    """Raw bytes sent as-is with their media type."""
    data: bytes
    media_type: str


@dataclass(frozen=True)
class InlineText:
    """Text sent as a prompt part."""
    text: str


Fragment = InlineBinary | InlineText


@dataclass
class NormalizationResult:
    """Output of :func:`normalize_files`."""
    fragments: list[Fragment] = field(default_factory=list)
    kinds: list[FileKind] = field(default_factory=list)   # one per input file
    warnings: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify(upload: UploadedFile) -> FileKind:
    """Classify an uploaded file.  The first matching rule wins."""
    media_type = (upload.media_type or "").lower()
    name = upload.name.lower()

    if media_type.startswith("image/"):
        return FileKind.IMAGE
    if media_type in ("text/csv", "text/plain") or name.endswith(".csv"):
        return FileKind.CSV
    if media_type == "application/json" or name.endswith(".json"):
        return FileKind.JSON
    if media_type == PDF_MEDIA_TYPE or name.endswith(".pdf"):
        return FileKind.PDF
    if (name.endswith(".xlsx") or name.endswith(".xls")
            or "spreadsheet" in media_type or "excel" in media_type):
        return FileKind.SPREADSHEET
    return FileKind.UNSUPPORTED


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

def decode_text(data: bytes) -> str:
    """Decode UTF-8 text, tolerating a BOM and replacing bad bytes."""
    return data.decode("utf-8-sig", errors="replace")


def spreadsheet_to_text(data: bytes, max_sheets: int = DEFAULT_MAX_SHEETS) -> str:
    """Convert the first *max_sheets* sheets of a workbook to CSV text.

    Sheets past the cap are ignored without error.
    """
    xl = pd.ExcelFile(io.BytesIO(data))
    try:
        sheet_names = xl.sheet_names[:max_sheets]
        skipped = len(xl.sheet_names) - len(sheet_names)
        if skipped > 0:
            logger.debug("Ignoring %d sheet(s) past the first %d",
                         skipped, max_sheets)
        parts = []
        for sheet in sheet_names:
            df = xl.parse(sheet, header=None, dtype=object)
            csv = df.to_csv(index=False, header=False, lineterminator="\n")
            parts.append(f"--- Sheet: {sheet} ---\n{csv}\n\n")
    finally:
        xl.close()
    return "".join(parts)


def normalize_file(upload: UploadedFile,
                   max_sheets: int = DEFAULT_MAX_SHEETS) -> Fragment | None:
    """Produce the prompt fragment for one file, or None if unsupported."""
    kind = classify(upload)

    if kind == FileKind.IMAGE:
        return InlineBinary(data=upload.data, media_type=upload.media_type)
    if kind == FileKind.PDF:
        return InlineBinary(data=upload.data, media_type=PDF_MEDIA_TYPE)
    if kind == FileKind.CSV:
        return InlineText(f"[CSV Data: {upload.name}]\n{decode_text(upload.data)}")
    if kind == FileKind.JSON:
        return InlineText(f"[JSON Data: {upload.name}]\n{decode_text(upload.data)}")
    if kind == FileKind.SPREADSHEET:
        text = spreadsheet_to_text(upload.data, max_sheets)
        return InlineText(f"[Excel Data: {upload.name}]\n{text}")
    return None


def normalize_files(uploads, max_sheets: int = DEFAULT_MAX_SHEETS) -> NormalizationResult:
    """Normalize files in order, collecting warnings for unsupported ones."""
    result = NormalizationResult()
    for upload in uploads:
        kind = classify(upload)
        result.kinds.append(kind)
        fragment = normalize_file(upload, max_sheets)
        if fragment is None:
            message = (
                f"Unsupported file skipped: {upload.name} "
                f"({upload.media_type or 'unknown type'})"
            )
            logger.warning(message)
            result.warnings.append(message)
            continue
        result.fragments.append(fragment)
    return result
