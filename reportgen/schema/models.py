"""Report data models - the contract between extractor, generator, and QA.

Defines the typed structure of an extracted marketing report: five fixed
sections, one per content slide.  Instances are built atomically from the
model's JSON answer via :meth:`ReportData.from_dict` and never mutated
afterwards.

Wire keys (the JSON field names the model fills in):
    slide_4_summary        — monthly summary table
    slide_5_page_ranking   — top pages by views
    slide_7_video_ranking  — top videos by views
    slide_10_engagement    — viewer vs non-viewer engagement
    slide_11_conversion    — viewer vs non-viewer conversion
"""

from dataclasses import dataclass
from typing import Any

from .design_system import parse_multiplier, parse_rate


class ReportParseError(ValueError):
    """Raised when a payload cannot be turned into a ReportData."""


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

def _section(d: Any, key: str) -> dict:
    if not isinstance(d, dict):
        raise ReportParseError(f"Expected an object, got {type(d).__name__}")
    if key not in d:
        raise ReportParseError(f"Missing required field '{key}'")
    value = d[key]
    if not isinstance(value, dict):
        raise ReportParseError(
            f"Field '{key}' should be an object, got {type(value).__name__}"
        )
    return value


def _text(value: Any, field: str) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ReportParseError(
            f"Field '{field}' should be a string, got {type(value).__name__}"
        )
    return str(value)


def _str(d: dict, key: str) -> str:
    if key not in d:
        raise ReportParseError(f"Missing required field '{key}'")
    return _text(d[key], key)


def _int(d: dict, key: str, minimum: int = 0) -> int:
    if key not in d:
        raise ReportParseError(f"Missing required field '{key}'")
    value = d[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ReportParseError(
            f"Field '{key}' should be a number, got {type(value).__name__}"
        )
    if isinstance(value, float) and not value.is_integer():
        raise ReportParseError(f"Field '{key}' should be a whole number: {value}")
    value = int(value)
    if value < minimum:
        raise ReportParseError(f"Field '{key}' must be >= {minimum}, got {value}")
    return value


def _list(d: dict, key: str) -> list:
    if key not in d:
        raise ReportParseError(f"Missing required field '{key}'")
    value = d[key]
    if not isinstance(value, list):
        raise ReportParseError(
            f"Field '{key}' should be a list, got {type(value).__name__}"
        )
    return value


def _multiplier(d: dict, key: str) -> str:
    raw = _str(d, key)
    try:
        return parse_multiplier(raw)
    except ValueError as exc:
        raise ReportParseError(f"Field '{key}': {exc}") from exc


def _rate(d: dict, key: str) -> str:
    raw = _str(d, key)
    try:
        return parse_rate(raw)
    except ValueError as exc:
        raise ReportParseError(f"Field '{key}': {exc}") from exc


# ---------------------------------------------------------------------------
# Summary (slide 4)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MetricRow:
    """One labelled row of the summary table."""
    label: str
    values: tuple[str | int | float, ...]

    def to_dict(self) -> dict:
        return {"label": self.label, "values": list(self.values)}

    @classmethod
    def from_dict(cls, d: dict) -> "MetricRow":
        values = []
        for v in _list(d, "values"):
            if isinstance(v, bool) or not isinstance(v, (str, int, float)):
                raise ReportParseError(
                    f"Summary values must be numbers or strings, got {v!r}"
                )
            values.append(v)
        return cls(label=_str(d, "label"), values=tuple(values))


@dataclass(frozen=True)
class SummarySection:
    """Monthly summary: column headers plus metric rows aligned to them."""
    title: str
    insight: str
    headers: tuple[str, ...]
    metrics: tuple[MetricRow, ...]

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "insight": self.insight,
            "headers": list(self.headers),
            "metrics": [m.to_dict() for m in self.metrics],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "SummarySection":
        return cls(
            title=_str(d, "title"),
            insight=_str(d, "insight"),
            headers=tuple(_text(h, "headers") for h in _list(d, "headers")),
            metrics=tuple(MetricRow.from_dict(m) for m in _list(d, "metrics")),
        )


# ---------------------------------------------------------------------------
# Rankings (slides 5 and 7)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageRankItem:
    rank: int
    url: str
    views: int

    def to_dict(self) -> dict:
        return {"rank": self.rank, "url": self.url, "views": self.views}

    @classmethod
    def from_dict(cls, d: dict) -> "PageRankItem":
        return cls(rank=_int(d, "rank", minimum=1), url=_str(d, "url"),
                   views=_int(d, "views"))


@dataclass(frozen=True)
class VideoRankItem:
    rank: int
    title: str
    views: int

    def to_dict(self) -> dict:
        return {"rank": self.rank, "title": self.title, "views": self.views}

    @classmethod
    def from_dict(cls, d: dict) -> "VideoRankItem":
        return cls(rank=_int(d, "rank", minimum=1), title=_str(d, "title"),
                   views=_int(d, "views"))


@dataclass(frozen=True)
class PageRankingSection:
    """Top pages by video views.  Order and ranks are kept as received."""
    insight: str
    ranking: tuple[PageRankItem, ...]

    def to_dict(self) -> dict:
        return {"insight": self.insight,
                "ranking": [r.to_dict() for r in self.ranking]}

    @classmethod
    def from_dict(cls, d: dict) -> "PageRankingSection":
        return cls(
            insight=_str(d, "insight"),
            ranking=tuple(PageRankItem.from_dict(r) for r in _list(d, "ranking")),
        )


@dataclass(frozen=True)
class VideoRankingSection:
    """Top videos by views.  Order and ranks are kept as received."""
    insight: str
    ranking: tuple[VideoRankItem, ...]

    def to_dict(self) -> dict:
        return {"insight": self.insight,
                "ranking": [r.to_dict() for r in self.ranking]}

    @classmethod
    def from_dict(cls, d: dict) -> "VideoRankingSection":
        return cls(
            insight=_str(d, "insight"),
            ranking=tuple(VideoRankItem.from_dict(r) for r in _list(d, "ranking")),
        )


# ---------------------------------------------------------------------------
# Engagement (slide 10)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EngagementMultipliers:
    """The four headline viewer / non-viewer ratios, as display strings."""
    avg_session_duration_multiplier: str
    pv_per_user_multiplier: str
    return_rate_multiplier: str
    session_pv_multiplier: str

    def to_dict(self) -> dict:
        return {
            "avg_session_duration_multiplier": self.avg_session_duration_multiplier,
            "pv_per_user_multiplier": self.pv_per_user_multiplier,
            "return_rate_multiplier": self.return_rate_multiplier,
            "session_pv_multiplier": self.session_pv_multiplier,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "EngagementMultipliers":
        return cls(
            avg_session_duration_multiplier=_multiplier(
                d, "avg_session_duration_multiplier"),
            pv_per_user_multiplier=_multiplier(d, "pv_per_user_multiplier"),
            return_rate_multiplier=_multiplier(d, "return_rate_multiplier"),
            session_pv_multiplier=_multiplier(d, "session_pv_multiplier"),
        )


@dataclass(frozen=True)
class EngagementRow:
    """Comparison row.  Values are free text since source units vary."""
    metric_name: str
    viewer_value: str
    non_viewer_value: str
    multiplier: str

    def to_dict(self) -> dict:
        return {
            "metric_name": self.metric_name,
            "viewer_value": self.viewer_value,
            "non_viewer_value": self.non_viewer_value,
            "multiplier": self.multiplier,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "EngagementRow":
        return cls(
            metric_name=_str(d, "metric_name"),
            viewer_value=_str(d, "viewer_value"),
            non_viewer_value=_str(d, "non_viewer_value"),
            multiplier=_multiplier(d, "multiplier"),
        )


@dataclass(frozen=True)
class EngagementSection:
    insight: str
    metrics: EngagementMultipliers
    table_rows: tuple[EngagementRow, ...]

    def to_dict(self) -> dict:
        return {
            "insight": self.insight,
            "metrics": self.metrics.to_dict(),
            "table_rows": [r.to_dict() for r in self.table_rows],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "EngagementSection":
        return cls(
            insight=_str(d, "insight"),
            metrics=EngagementMultipliers.from_dict(_section(d, "metrics")),
            table_rows=tuple(
                EngagementRow.from_dict(r) for r in _list(d, "table_rows")
            ),
        )


# ---------------------------------------------------------------------------
# Conversion (slide 11)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConversionTally:
    total_users_viewer: int
    total_users_non_viewer: int
    cv_users_viewer: int
    cv_users_non_viewer: int

    def to_dict(self) -> dict:
        return {
            "total_users_viewer": self.total_users_viewer,
            "total_users_non_viewer": self.total_users_non_viewer,
            "cv_users_viewer": self.cv_users_viewer,
            "cv_users_non_viewer": self.cv_users_non_viewer,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ConversionTally":
        return cls(
            total_users_viewer=_int(d, "total_users_viewer"),
            total_users_non_viewer=_int(d, "total_users_non_viewer"),
            cv_users_viewer=_int(d, "cv_users_viewer"),
            cv_users_non_viewer=_int(d, "cv_users_non_viewer"),
        )


@dataclass(frozen=True)
class ConversionSection:
    insight: str
    viewer_cvr: str
    non_viewer_cvr: str
    multiplier: str
    table_data: ConversionTally

    def to_dict(self) -> dict:
        return {
            "insight": self.insight,
            "viewer_cvr": self.viewer_cvr,
            "non_viewer_cvr": self.non_viewer_cvr,
            "multiplier": self.multiplier,
            "table_data": self.table_data.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ConversionSection":
        return cls(
            insight=_str(d, "insight"),
            viewer_cvr=_rate(d, "viewer_cvr"),
            non_viewer_cvr=_rate(d, "non_viewer_cvr"),
            multiplier=_multiplier(d, "multiplier"),
            table_data=ConversionTally.from_dict(_section(d, "table_data")),
        )


# ---------------------------------------------------------------------------
# ReportData (root)
# ---------------------------------------------------------------------------

SECTION_KEYS = (
    "slide_4_summary",
    "slide_5_page_ranking",
    "slide_7_video_ranking",
    "slide_10_engagement",
    "slide_11_conversion",
)


@dataclass(frozen=True)
class ReportData:
    """Complete extraction result.  Every section is required."""
    summary: SummarySection
    page_ranking: PageRankingSection
    video_ranking: VideoRankingSection
    engagement: EngagementSection
    conversion: ConversionSection

    def to_dict(self) -> dict:
        return {
            "slide_4_summary": self.summary.to_dict(),
            "slide_5_page_ranking": self.page_ranking.to_dict(),
            "slide_7_video_ranking": self.video_ranking.to_dict(),
            "slide_10_engagement": self.engagement.to_dict(),
            "slide_11_conversion": self.conversion.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "ReportData":
        return cls(
            summary=SummarySection.from_dict(_section(d, "slide_4_summary")),
            page_ranking=PageRankingSection.from_dict(
                _section(d, "slide_5_page_ranking")),
            video_ranking=VideoRankingSection.from_dict(
                _section(d, "slide_7_video_ranking")),
            engagement=EngagementSection.from_dict(
                _section(d, "slide_10_engagement")),
            conversion=ConversionSection.from_dict(
                _section(d, "slide_11_conversion")),
        )
