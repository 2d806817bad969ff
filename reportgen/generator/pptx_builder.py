"""PPTX builder engine — renders a ReportData into the fixed report deck.

Produces a 16:9 presentation with six slides: a cover followed by one
slide per report section (summary, page ranking, video ranking,
engagement, conversion).  Content slides share a black header bar, an
optional bulleted insight line, and either a table or large multiplier
callouts.  Values are reproduced exactly as extracted: nothing is sorted,
filtered, or recomputed here.

Usage::

    from reportgen.generator.pptx_builder import ReportDeckBuilder

    builder = ReportDeckBuilder()
    pptx_bytes = builder.build(report, "Acme")
    path = builder.build_to_file(report, "Acme", "output/")
"""

import datetime
import io
import re
from dataclasses import dataclass
from pathlib import Path

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from reportgen.schema.design_system import (
    DesignSystem,
    format_cell,
    format_integer,
    format_multiplier,
    format_report_date,
)
from reportgen.schema.models import (
    ConversionSection,
    EngagementSection,
    PageRankingSection,
    ReportData,
    SummarySection,
    VideoRankingSection,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SUMMARY_TITLE_FALLBACK = "視聴データサマリ"
PAGE_RANKING_TITLE = "ページ別 視聴回数"
VIDEO_RANKING_TITLE = "動画別 視聴回数"
ENGAGEMENT_TITLE = "エンゲージメント数値比較"
CONVERSION_TITLE = "コンバージョン数値比較"

_ALIGN_MAP = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
}

_BLANK_LAYOUT = 6
_MARGIN = 0.5
_TABLE_TOP = 2.0
_LOWER_TABLE_TOP = 3.5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _hex_to_rgb(hex_color: str) -> RGBColor:
    """Convert '#RRGGBB' hex string to an RGBColor."""
    h = hex_color.lstrip("#")
    return RGBColor(*bytes.fromhex(h))


_UNSAFE_FILENAME_CHARS = re.compile(r"[\\/\x00]")


def report_filename(customer_name: str) -> str:
    """Download name for a customer's deck.

    Path separators and NUL become ``_`` so the name always stays a single
    component inside the output directory.  A name left empty or made only
    of dots falls back to ``Customer``.
    """
    safe = _UNSAFE_FILENAME_CHARS.sub("_", customer_name).strip()
    if not safe.strip("."):
        safe = "Customer"
    return f"{safe}_Report.pptx"


@dataclass
class _Cell:
    """Text plus optional styling for one table cell."""
    text: str
    fill: str | None = None
    color: str | None = None
    bold: bool = False


# ---------------------------------------------------------------------------
# ReportDeckBuilder
# ---------------------------------------------------------------------------

class ReportDeckBuilder:
    """Builds the report deck from a ReportData.

    Parameters
    ----------
    design : DesignSystem
        Colours, fonts, and canvas size.  Defaults to the standard 16:9
        report design.
    """

    def __init__(self, design: DesignSystem | None = None) -> None:
        self.design = design or DesignSystem()

    def build(self, data: ReportData, customer_name: str,
              report_date: datetime.date | None = None) -> bytes:
        """Build the PPTX and return it as bytes.

        Parameters
        ----------
        data : ReportData
            The extracted report.
        customer_name : str
            Shown on the cover and stored in the document properties.
        report_date : datetime.date, optional
            Date printed on the cover.  Defaults to today.
        """
        report_date = report_date or datetime.date.today()

        prs = Presentation()
        prs.slide_width = Inches(self.design.width_inches)
        prs.slide_height = Inches(self.design.height_inches)
        prs.core_properties.title = f"{customer_name} Marketing Report"
        prs.core_properties.author = "Marketing Report Generator"

        self._build_cover(prs, customer_name, report_date)
        self._build_summary(prs, data.summary)
        self._build_page_ranking(prs, data.page_ranking)
        self._build_video_ranking(prs, data.video_ranking)
        self._build_engagement(prs, data.engagement)
        self._build_conversion(prs, data.conversion)

        buf = io.BytesIO()
        prs.save(buf)
        return buf.getvalue()

    def build_to_file(self, data: ReportData, customer_name: str,
                      directory: str | Path,
                      report_date: datetime.date | None = None) -> Path:
        """Build the PPTX and write ``<customer>_Report.pptx`` in *directory*."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / report_filename(customer_name)
        path.write_bytes(self.build(data, customer_name, report_date))
        return path

    # ------------------------------------------------------------------
    # Shape primitives
    # ------------------------------------------------------------------

    def _add_text(self, slide, text: str, left: float, top: float,
                  width: float, height: float, size_pt: float,
                  color: str | None = None, bold: bool = False,
                  font: str | None = None, align: str = "left"):
        txbox = slide.shapes.add_textbox(
            Inches(left), Inches(top), Inches(width), Inches(height),
        )
        tf = txbox.text_frame
        tf.word_wrap = True
        p = tf.paragraphs[0]
        p.alignment = _ALIGN_MAP.get(align, PP_ALIGN.LEFT)
        run = p.add_run()
        run.text = text
        run.font.name = font or self.design.primary_font
        run.font.size = Pt(size_pt)
        run.font.bold = bold
        run.font.color.rgb = _hex_to_rgb(color or self.design.black)
        return txbox

    def _add_table(self, slide, rows: list[list[_Cell]], top: float,
                   size_pt: float, row_height: float | None = None,
                   col_widths: list[float] | None = None,
                   align: str = "center"):
        """Render *rows* (first row is the header) as a table."""
        num_rows = len(rows)
        num_cols = len(rows[0])
        width = self.design.width_inches - 2 * _MARGIN
        height = (row_height or 0.4) * num_rows

        table_shape = slide.shapes.add_table(
            num_rows, num_cols,
            Inches(_MARGIN), Inches(top), Inches(width), Inches(height),
        )
        table = table_shape.table

        if col_widths:
            for col_idx, col_width in enumerate(col_widths):
                table.columns[col_idx].width = Inches(col_width)
        if row_height:
            for row in table.rows:
                row.height = Inches(row_height)

        for row_idx, row in enumerate(rows):
            for col_idx, spec in enumerate(row):
                cell = table.cell(row_idx, col_idx)
                cell.text = spec.text
                self._style_table_cell(cell, spec, size_pt, align)
        return table_shape

    def _style_table_cell(self, cell, spec: _Cell, size_pt: float,
                          alignment: str) -> None:
        """Apply font, colour, and fill to a table cell."""
        cell.vertical_anchor = MSO_ANCHOR.MIDDLE
        if spec.fill:
            cell.fill.solid()
            cell.fill.fore_color.rgb = _hex_to_rgb(spec.fill)

        for paragraph in cell.text_frame.paragraphs:
            paragraph.alignment = _ALIGN_MAP.get(alignment, PP_ALIGN.CENTER)
            for run in paragraph.runs:
                run.font.name = self.design.primary_font
                run.font.size = Pt(size_pt)
                run.font.bold = spec.bold
                run.font.color.rgb = _hex_to_rgb(spec.color or self.design.black)

    def _header(self, labels) -> list[_Cell]:
        return [
            _Cell(text=label, fill=self.design.black,
                  color=self.design.white, bold=True)
            for label in labels
        ]

    def _add_callout(self, slide, label: str, value: str, left: float,
                     top: float, label_size: float, value_size: float,
                     value_left: float, label_bold: bool = False,
                     label_color: str | None = None) -> None:
        """Label with a large red multiplier beside it."""
        self._add_text(slide, label, left, top, value_left - left, 0.5,
                       label_size, color=label_color or self.design.muted_text,
                       bold=label_bold)
        self._add_text(slide, value, value_left, top - 0.2, 3.0, 0.8,
                       value_size, color=self.design.accent_red, bold=True)

    # ------------------------------------------------------------------
    # Slide builders
    # ------------------------------------------------------------------

    def _new_slide(self, prs):
        # Blank layout avoids placeholder interference
        return prs.slides.add_slide(prs.slide_layouts[_BLANK_LAYOUT])

    def _content_slide(self, prs, title: str, insight: str | None = None):
        """White slide with a black header bar and an optional insight line."""
        slide = self._new_slide(prs)
        design = self.design

        bar = slide.shapes.add_shape(
            MSO_SHAPE.RECTANGLE, 0, 0,
            Inches(design.width_inches), Inches(design.header_bar_height),
        )
        bar.fill.solid()
        bar.fill.fore_color.rgb = _hex_to_rgb(design.black)
        bar.line.fill.background()

        self._add_text(slide, title, _MARGIN, 0.1,
                       design.width_inches - 2 * _MARGIN, 0.6,
                       design.title_size_pt, color=design.white, bold=True)

        if insight and insight.strip():
            self._add_text(slide, f"● {insight}", _MARGIN, 1.0,
                           design.width_inches - 2 * _MARGIN, 0.8,
                           design.insight_size_pt)
        return slide

    def _build_cover(self, prs, customer_name: str,
                     report_date: datetime.date) -> None:
        slide = self._new_slide(prs)
        design = self.design

        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _hex_to_rgb(design.black)

        self._add_text(slide, design.brand_name, 0.5, 0.5, 4.0, 0.6, 24.0,
                       color=design.white, bold=True, font=design.brand_font)
        self._add_text(slide, f"{customer_name} 御中", 1.0, 1.8, 8.0, 1.0,
                       32.0, color=design.white, bold=True)
        self._add_text(slide, design.cover_subtitle, 1.0, 2.8, 8.0, 1.0,
                       24.0, color=design.white)
        self._add_text(slide, format_report_date(report_date), 1.0, 4.6,
                       3.0, 0.5, 18.0, color=design.white)

    def _build_summary(self, prs, section: SummarySection) -> None:
        slide = self._content_slide(
            prs, section.title or SUMMARY_TITLE_FALLBACK, section.insight,
        )
        num_values = len(section.headers)
        rows = [self._header(["項目", *section.headers])]
        for metric in section.metrics:
            # Cells follow the header count; extra values are dropped and
            # short rows leave trailing cells blank.
            values = list(metric.values[:num_values])
            values += [None] * (num_values - len(values))
            rows.append(
                [_Cell(text=metric.label, fill=self.design.label_fill, bold=True)]
                + [_Cell(text=format_cell(v)) for v in values]
            )
        self._add_table(slide, rows, _TABLE_TOP, self.design.table_size_pt,
                        row_height=0.4)

    def _build_page_ranking(self, prs, section: PageRankingSection) -> None:
        slide = self._content_slide(prs, PAGE_RANKING_TITLE, section.insight)
        rows = [self._header(["Rank", "ページURL", "視聴数"])]
        for item in section.ranking:
            rows.append([
                _Cell(text=str(item.rank)),
                _Cell(text=item.url),
                _Cell(text=format_integer(item.views)),
            ])
        self._add_table(slide, rows, _TABLE_TOP,
                        self.design.ranking_table_size_pt, row_height=0.4,
                        col_widths=[0.8, 6.2, 2.0], align="left")

    def _build_video_ranking(self, prs, section: VideoRankingSection) -> None:
        slide = self._content_slide(prs, VIDEO_RANKING_TITLE, section.insight)
        rows = [self._header(["Rank", "動画タイトル", "視聴数"])]
        for item in section.ranking:
            rows.append([
                _Cell(text=str(item.rank)),
                _Cell(text=item.title),
                _Cell(text=format_integer(item.views)),
            ])
        self._add_table(slide, rows, _TABLE_TOP,
                        self.design.ranking_table_size_pt, row_height=0.4,
                        col_widths=[0.8, 6.2, 2.0], align="left")

    def _build_engagement(self, prs, section: EngagementSection) -> None:
        slide = self._content_slide(prs, ENGAGEMENT_TITLE, section.insight)
        design = self.design

        self._add_callout(
            slide, "平均セッション時間",
            format_multiplier(section.metrics.avg_session_duration_multiplier),
            left=1.0, top=2.0, label_size=design.callout_label_size_pt,
            value_size=design.callout_value_size_pt, value_left=3.5,
        )
        self._add_callout(
            slide, "ユーザーあたりPV",
            format_multiplier(section.metrics.pv_per_user_multiplier),
            left=1.0, top=2.7, label_size=design.callout_label_size_pt,
            value_size=design.callout_value_size_pt, value_left=3.5,
        )

        rows = [self._header(["指標", "動画視聴者", "動画未視聴者", "倍率"])]
        for row in section.table_rows:
            rows.append([
                _Cell(text=row.metric_name),
                _Cell(text=row.viewer_value),
                _Cell(text=row.non_viewer_value),
                _Cell(text=format_multiplier(row.multiplier),
                      color=design.accent_red, bold=True),
            ])
        self._add_table(slide, rows, _LOWER_TABLE_TOP, design.table_size_pt,
                        row_height=0.35)

    def _build_conversion(self, prs, section: ConversionSection) -> None:
        slide = self._content_slide(prs, CONVERSION_TITLE, section.insight)
        design = self.design
        headline = format_multiplier(section.multiplier)
        tally = section.table_data

        self._add_callout(
            slide, "予約完了率 (CVR)", headline,
            left=1.0, top=2.2, label_size=18.0,
            value_size=design.headline_value_size_pt, value_left=4.0,
            label_bold=True, label_color=design.black,
        )

        rows = [
            self._header(["ユーザーセグメント", "総ユーザー数", "予約ユーザー", "CVR"]),
            [
                _Cell(text="動画視聴者"),
                _Cell(text=format_integer(tally.total_users_viewer)),
                _Cell(text=format_integer(tally.cv_users_viewer)),
                _Cell(text=section.viewer_cvr),
            ],
            [
                _Cell(text="動画未視聴者"),
                _Cell(text=format_integer(tally.total_users_non_viewer)),
                _Cell(text=format_integer(tally.cv_users_non_viewer)),
                _Cell(text=section.non_viewer_cvr),
            ],
            [
                _Cell(text="", fill=design.white),
                _Cell(text="", fill=design.white),
                _Cell(text="", fill=design.white),
                _Cell(text=headline, color=design.accent_red, bold=True),
            ],
        ]
        self._add_table(slide, rows, _LOWER_TABLE_TOP, 14.0, row_height=0.45)


# ---------------------------------------------------------------------------
# Convenience function
# ---------------------------------------------------------------------------

def build_report_deck(data: ReportData, customer_name: str,
                      report_date: datetime.date | None = None) -> bytes:
    """One-shot convenience: build a PPTX from a ReportData."""
    return ReportDeckBuilder().build(data, customer_name, report_date)
