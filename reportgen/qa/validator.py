"""QA validator — inspects a generated deck against the ReportData behind it.

Reads the PPTX back with python-pptx and checks the fixed layout contract:
slide count, 16:9 dimensions, per-slide titles, table row/column counts
matching the report's rows, and the multiplier callouts.  Also flags
summary rows whose value count differs from the header count, since the
renderer reproduces those without repair.

Usage::

    from reportgen.qa.validator import ReportValidator

    validator = ReportValidator()
    result = validator.validate(pptx_bytes, report)
    assert result.passed, result.summary()
"""

import io
from dataclasses import dataclass, field

from pptx import Presentation
from pptx.util import Inches

from reportgen.generator.pptx_builder import (
    CONVERSION_TITLE,
    ENGAGEMENT_TITLE,
    PAGE_RANKING_TITLE,
    SUMMARY_TITLE_FALLBACK,
    VIDEO_RANKING_TITLE,
)
from reportgen.schema.design_system import DesignSystem, format_multiplier
from reportgen.schema.models import ReportData

EXPECTED_SLIDES = 6

SLIDE_NAMES = (
    "cover",
    "summary",
    "page_ranking",
    "video_ranking",
    "engagement",
    "conversion",
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass
class Issue:
    """A single QA issue found during validation."""
    severity: str       # "error" or "warning"
    slide_index: int    # -1 for presentation-level issues
    category: str       # e.g. "slide_count", "table_rows", "callout"
    message: str

    @property
    def slide_name(self) -> str:
        if 0 <= self.slide_index < len(SLIDE_NAMES):
            return SLIDE_NAMES[self.slide_index]
        return ""

    def __str__(self) -> str:
        loc = f"slide {self.slide_index}"
        if self.slide_name:
            loc += f" ({self.slide_name})"
        return f"[{self.severity.upper()}] {loc}: {self.message}"


@dataclass
class QAResult:
    """Aggregated result of QA validation."""
    issues: list[Issue] = field(default_factory=list)

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        """One-line summary string."""
        status = "PASS" if self.passed else "FAIL"
        return (
            f"QA {status}: {len(self.errors)} error(s), "
            f"{len(self.warnings)} warning(s)"
        )

    def report(self) -> str:
        """Multi-line report of all issues."""
        lines = [self.summary()]
        for issue in self.issues:
            lines.append(f"  {issue}")
        return "\n".join(lines)

    def _add(self, severity, slide_index, category, message) -> None:
        self.issues.append(Issue(severity, slide_index, category, message))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _all_text_on_slide(slide) -> str:
    """Concatenate all text on a slide for content searches."""
    parts: list[str] = []
    for shape in slide.shapes:
        if shape.has_text_frame:
            parts.append(shape.text_frame.text)
    return " ".join(parts)


def _table_shapes(slide) -> list:
    """Return all table shapes on a slide."""
    return [s for s in slide.shapes if s.has_table]


# ---------------------------------------------------------------------------
# ReportValidator
# ---------------------------------------------------------------------------

class ReportValidator:
    """Validates a rendered report deck against its ReportData."""

    def __init__(self, design: DesignSystem | None = None) -> None:
        self.design = design or DesignSystem()

    def validate(self, pptx_bytes: bytes, data: ReportData,
                 customer_name: str | None = None) -> QAResult:
        """Run all checks on a built PPTX."""
        prs = Presentation(io.BytesIO(pptx_bytes))
        result = QAResult()

        self._check_slide_count(prs, result)
        self._check_dimensions(prs, result)
        self._check_report_shape(data, result)

        if len(prs.slides) != EXPECTED_SLIDES:
            return result

        slides = list(prs.slides)
        if customer_name is not None:
            self._check_cover(slides[0], customer_name, result)

        summary = data.summary
        self._check_title(slides[1], 1, summary.title or SUMMARY_TITLE_FALLBACK,
                          result)
        self._check_table(slides[1], 1, len(summary.metrics) + 1,
                          len(summary.headers) + 1, result)

        self._check_title(slides[2], 2, PAGE_RANKING_TITLE, result)
        self._check_table(slides[2], 2, len(data.page_ranking.ranking) + 1,
                          3, result)

        self._check_title(slides[3], 3, VIDEO_RANKING_TITLE, result)
        self._check_table(slides[3], 3, len(data.video_ranking.ranking) + 1,
                          3, result)

        engagement = data.engagement
        self._check_title(slides[4], 4, ENGAGEMENT_TITLE, result)
        self._check_table(slides[4], 4, len(engagement.table_rows) + 1, 4,
                          result)
        self._check_callout(slides[4], 4,
                            engagement.metrics.avg_session_duration_multiplier,
                            result)
        self._check_callout(slides[4], 4,
                            engagement.metrics.pv_per_user_multiplier, result)

        self._check_title(slides[5], 5, CONVERSION_TITLE, result)
        self._check_table(slides[5], 5, 4, 4, result)
        self._check_callout(slides[5], 5, data.conversion.multiplier, result)

        return result

    # ------------------------------------------------------------------
    # Presentation-level checks
    # ------------------------------------------------------------------

    def _check_slide_count(self, prs, result: QAResult) -> None:
        actual = len(prs.slides)
        if actual != EXPECTED_SLIDES:
            result._add("error", -1, "slide_count",
                        f"Expected {EXPECTED_SLIDES} slides, got {actual}")

    def _check_dimensions(self, prs, result: QAResult) -> None:
        expected_w = Inches(self.design.width_inches)
        expected_h = Inches(self.design.height_inches)
        if prs.slide_width != expected_w or prs.slide_height != expected_h:
            result._add(
                "error", -1, "dimensions",
                f"Slide size {prs.slide_width}x{prs.slide_height} != "
                f"expected {expected_w}x{expected_h}",
            )

    def _check_report_shape(self, data: ReportData, result: QAResult) -> None:
        """Warn about summary rows not aligned with the headers."""
        expected = len(data.summary.headers)
        for metric in data.summary.metrics:
            if len(metric.values) != expected:
                result._add(
                    "warning", 1, "row_width",
                    f"Metric '{metric.label}' has {len(metric.values)} "
                    f"value(s) for {expected} header(s)",
                )

    # ------------------------------------------------------------------
    # Slide-level checks
    # ------------------------------------------------------------------

    def _check_cover(self, slide, customer_name: str, result: QAResult) -> None:
        if customer_name not in _all_text_on_slide(slide):
            result._add("error", 0, "cover",
                        f"Customer name '{customer_name}' not on cover")

    def _check_title(self, slide, index: int, title: str,
                     result: QAResult) -> None:
        if title not in _all_text_on_slide(slide):
            result._add("error", index, "title", f"Title '{title}' not found")

    def _check_table(self, slide, index: int, rows: int, cols: int,
                     result: QAResult) -> None:
        tables = _table_shapes(slide)
        if len(tables) != 1:
            result._add("error", index, "table_missing",
                        f"Expected 1 table, found {len(tables)}")
            return
        table = tables[0].table
        if len(table.rows) != rows:
            result._add("error", index, "table_rows",
                        f"Expected {rows} table rows, got {len(table.rows)}")
        if len(table.columns) != cols:
            result._add("error", index, "table_columns",
                        f"Expected {cols} table columns, "
                        f"got {len(table.columns)}")

    def _check_callout(self, slide, index: int, multiplier: str,
                       result: QAResult) -> None:
        expected = format_multiplier(multiplier)
        if expected not in _all_text_on_slide(slide):
            result._add("error", index, "callout",
                        f"Multiplier callout '{expected}' not found")


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def validate_presentation(pptx_bytes: bytes, data: ReportData,
                          customer_name: str | None = None) -> QAResult:
    """One-shot convenience: validate a deck against its report."""
    return ReportValidator().validate(pptx_bytes, data, customer_name)
