"""Report schema package — typed models for the extracted report.

Provides the contract between the extractor, the deck generator, and QA:

- models.py: Frozen dataclasses (ReportData and its five sections)
- design_system.py: Palette, fonts, value formatting and parsing
- response_schema.py: JSON schema the model's answer must follow
- loader.py: YAML/JSON serialization/deserialization
"""

from .design_system import (
    DesignSystem,
    format_cell,
    format_integer,
    format_multiplier,
    format_report_date,
    parse_multiplier,
    parse_rate,
)
from .loader import load_report, save_report
from .models import (
    SECTION_KEYS,
    ConversionSection,
    ConversionTally,
    EngagementMultipliers,
    EngagementRow,
    EngagementSection,
    MetricRow,
    PageRankingSection,
    PageRankItem,
    ReportData,
    ReportParseError,
    SummarySection,
    VideoRankingSection,
    VideoRankItem,
)
from .response_schema import RESPONSE_SCHEMA

__all__ = [
    # Models
    "ConversionSection",
    "ConversionTally",
    "EngagementMultipliers",
    "EngagementRow",
    "EngagementSection",
    "MetricRow",
    "PageRankingSection",
    "PageRankItem",
    "ReportData",
    "ReportParseError",
    "SECTION_KEYS",
    "SummarySection",
    "VideoRankingSection",
    "VideoRankItem",
    # Response schema
    "RESPONSE_SCHEMA",
    # Loader
    "load_report",
    "save_report",
    # Design system
    "DesignSystem",
    "format_cell",
    "format_integer",
    "format_multiplier",
    "format_report_date",
    "parse_multiplier",
    "parse_rate",
]
