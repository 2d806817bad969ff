"""Design system utilities — palette, fonts, and value formatting.

Implements the display rules used on the report slides:
- Counts: thousands separators (12,345)
- Multipliers: <value>倍 (9.1倍)
- Dates: YYYY/M/D (ja-JP short date)

Also provides the strict parsers applied to multiplier and rate strings
when a report is ingested, so malformed model output is rejected before
anything is rendered.
"""

import datetime
import math
import re
from dataclasses import dataclass


# ---------------------------------------------------------------------------
# Design tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DesignSystem:
    """Colours, fonts, and canvas size for the report deck."""
    width_inches: float = 10.0
    height_inches: float = 5.625

    primary_font: str = "Meiryo"
    brand_font: str = "Arial"
    brand_name: str = "Firework"
    cover_subtitle: str = "定例ミーティングレポート"

    black: str = "#000000"
    white: str = "#FFFFFF"
    accent_red: str = "#FF0055"
    muted_text: str = "#475569"
    label_fill: str = "#F1F5F9"
    border: str = "#CBD5E1"

    header_bar_height: float = 0.8
    title_size_pt: float = 20.0
    insight_size_pt: float = 14.0
    table_size_pt: float = 12.0
    ranking_table_size_pt: float = 11.0
    callout_label_size_pt: float = 14.0
    callout_value_size_pt: float = 32.0
    headline_value_size_pt: float = 48.0


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------

_MULTIPLIER_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:x|X|×|倍|times)?$")
_RATE_RE = re.compile(r"^\d+(?:\.\d+)?\s*%?$")


def parse_multiplier(value: str) -> str:
    """Validate a multiplier string and return its bare numeric text.

    Examples:
        "2.9"   -> "2.9"
        "9.1x"  -> "9.1"
        "3倍"   -> "3"

    Raises:
        ValueError: If the string is not a non-negative decimal with an
            optional multiplier suffix.
    """
    s = str(value).strip()
    match = _MULTIPLIER_RE.match(s)
    if not match:
        raise ValueError(f"Malformed multiplier {value!r}")
    return match.group(1)


def parse_rate(value: str) -> str:
    """Validate a rate string such as "3.5%" and return it stripped.

    Raises:
        ValueError: If the string is not a non-negative decimal with an
            optional percent sign.
    """
    s = str(value).strip()
    if not _RATE_RE.match(s):
        raise ValueError(f"Malformed rate {value!r}")
    return s


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------

def format_integer(value: float | int | None) -> str:
    """Format a whole number with comma separators."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    return f"{int(value):,}"


def format_multiplier(value: str) -> str:
    """Append the 倍 suffix: "9.1" -> "9.1倍"."""
    return f"{value}倍"


def format_cell(value: str | int | float | None) -> str:
    """Render a summary-table value verbatim, dropping float artifacts."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_report_date(date: datetime.date) -> str:
    """Short Japanese-locale date without zero padding: 2026/1/5."""
    return f"{date.year}/{date.month}/{date.day}"
