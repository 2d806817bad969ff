"""Tests for the report data models and the design-system parsers."""

import dataclasses
import datetime

import pytest

from reportgen.schema.design_system import (
    format_cell,
    format_integer,
    format_multiplier,
    format_report_date,
    parse_multiplier,
    parse_rate,
)
from reportgen.schema.models import (
    SECTION_KEYS,
    ReportData,
    ReportParseError,
)
from reportgen.schema.response_schema import RESPONSE_SCHEMA


# ---------------------------------------------------------------------------
# parse_multiplier / parse_rate
# ---------------------------------------------------------------------------

class TestParseMultiplier:
    def test_plain_decimal(self):
        assert parse_multiplier("2.9") == "2.9"

    def test_integer(self):
        assert parse_multiplier("3") == "3"

    def test_x_suffix(self):
        assert parse_multiplier("9.1x") == "9.1"

    def test_kanji_suffix(self):
        assert parse_multiplier("2.5倍") == "2.5"

    def test_surrounding_whitespace(self):
        assert parse_multiplier("  1.4 ") == "1.4"

    def test_rejects_text(self):
        with pytest.raises(ValueError, match="Malformed multiplier"):
            parse_multiplier("about twice")

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            parse_multiplier("")

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            parse_multiplier("-1.2")


class TestParseRate:
    def test_percent(self):
        assert parse_rate("9.1%") == "9.1%"

    def test_bare_number(self):
        assert parse_rate("1.05") == "1.05"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError, match="Malformed rate"):
            parse_rate("N/A")


class TestFormatters:
    def test_integer_separators(self):
        assert format_integer(54000) == "54,000"

    def test_integer_none(self):
        assert format_integer(None) == "N/A"

    def test_multiplier(self):
        assert format_multiplier("9.1") == "9.1倍"

    def test_cell_drops_float_artifact(self):
        assert format_cell(18.0) == "18"

    def test_cell_keeps_decimal(self):
        assert format_cell(1.25) == "1.25"

    def test_cell_string(self):
        assert format_cell("2.1%") == "2.1%"

    def test_report_date_unpadded(self):
        assert format_report_date(datetime.date(2026, 1, 5)) == "2026/1/5"


# ---------------------------------------------------------------------------
# ReportData.from_dict
# ---------------------------------------------------------------------------

class TestReportDataFromDict:
    def test_all_sections_parsed(self, sample_report):
        assert sample_report.summary.headers == ("8月", "9月", "10月")
        assert len(sample_report.summary.metrics) == 3
        assert sample_report.page_ranking.ranking[0].url == "https://example.com/recruit"
        assert sample_report.video_ranking.ranking[2].title == "1日の流れ"
        assert sample_report.engagement.metrics.avg_session_duration_multiplier == "2.9"
        assert sample_report.conversion.table_data.cv_users_viewer == 109

    def test_round_trip(self, report_dict):
        report = ReportData.from_dict(report_dict)
        assert ReportData.from_dict(report.to_dict()) == report

    def test_wire_keys(self, sample_report):
        assert tuple(sample_report.to_dict()) == SECTION_KEYS

    def test_frozen(self, sample_report):
        with pytest.raises(dataclasses.FrozenInstanceError):
            sample_report.summary = None

    def test_ranking_order_kept_verbatim(self, report_dict):
        report_dict["slide_5_page_ranking"]["ranking"] = [
            {"rank": 3, "url": "/c", "views": 10},
            {"rank": 1, "url": "/a", "views": 99},
        ]
        report = ReportData.from_dict(report_dict)
        assert [r.rank for r in report.page_ranking.ranking] == [3, 1]

    def test_multiplier_suffix_stripped(self, report_dict):
        report_dict["slide_11_conversion"]["multiplier"] = "9.1x"
        report = ReportData.from_dict(report_dict)
        assert report.conversion.multiplier == "9.1"

    def test_float_counts_accepted_when_whole(self, report_dict):
        report_dict["slide_11_conversion"]["table_data"]["cv_users_viewer"] = 109.0
        report = ReportData.from_dict(report_dict)
        assert report.conversion.table_data.cv_users_viewer == 109

    def test_mismatched_summary_row_not_rejected(self, report_dict):
        report_dict["slide_4_summary"]["metrics"][0]["values"] = [1]
        report = ReportData.from_dict(report_dict)
        assert report.summary.metrics[0].values == (1,)


class TestReportDataRejects:
    def test_missing_section(self, report_dict):
        del report_dict["slide_7_video_ranking"]
        with pytest.raises(ReportParseError, match="slide_7_video_ranking"):
            ReportData.from_dict(report_dict)

    def test_not_an_object(self):
        with pytest.raises(ReportParseError):
            ReportData.from_dict(["not", "a", "dict"])

    def test_missing_field(self, report_dict):
        del report_dict["slide_11_conversion"]["viewer_cvr"]
        with pytest.raises(ReportParseError, match="viewer_cvr"):
            ReportData.from_dict(report_dict)

    def test_malformed_multiplier(self, report_dict):
        report_dict["slide_10_engagement"]["metrics"]["pv_per_user_multiplier"] = "lots"
        with pytest.raises(ReportParseError, match="pv_per_user_multiplier"):
            ReportData.from_dict(report_dict)

    def test_malformed_row_multiplier(self, report_dict):
        report_dict["slide_10_engagement"]["table_rows"][0]["multiplier"] = "?"
        with pytest.raises(ReportParseError):
            ReportData.from_dict(report_dict)

    def test_negative_views(self, report_dict):
        report_dict["slide_7_video_ranking"]["ranking"][0]["views"] = -5
        with pytest.raises(ReportParseError, match="views"):
            ReportData.from_dict(report_dict)

    def test_zero_rank(self, report_dict):
        report_dict["slide_5_page_ranking"]["ranking"][0]["rank"] = 0
        with pytest.raises(ReportParseError, match="rank"):
            ReportData.from_dict(report_dict)

    def test_fractional_count(self, report_dict):
        report_dict["slide_11_conversion"]["table_data"]["total_users_viewer"] = 10.5
        with pytest.raises(ReportParseError):
            ReportData.from_dict(report_dict)

    def test_ranking_not_a_list(self, report_dict):
        report_dict["slide_5_page_ranking"]["ranking"] = {"rank": 1}
        with pytest.raises(ReportParseError, match="list"):
            ReportData.from_dict(report_dict)

    @pytest.mark.parametrize("header", [None, {"month": "8月"}, ["8月"], True])
    def test_bad_summary_header(self, report_dict, header):
        report_dict["slide_4_summary"]["headers"][1] = header
        with pytest.raises(ReportParseError, match="headers"):
            ReportData.from_dict(report_dict)

    def test_numeric_summary_header_kept_as_text(self, report_dict):
        report_dict["slide_4_summary"]["headers"] = [2024, 2025, 2026]
        report = ReportData.from_dict(report_dict)
        assert report.summary.headers == ("2024", "2025", "2026")

    def test_bool_is_not_a_number(self, report_dict):
        report_dict["slide_5_page_ranking"]["ranking"][0]["views"] = True
        with pytest.raises(ReportParseError):
            ReportData.from_dict(report_dict)


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------

class TestResponseSchema:
    def test_all_sections_required(self):
        assert RESPONSE_SCHEMA["required"] == list(SECTION_KEYS)

    def test_nested_fields_required(self):
        conversion = RESPONSE_SCHEMA["properties"]["slide_11_conversion"]
        assert set(conversion["required"]) == {
            "insight", "viewer_cvr", "non_viewer_cvr", "multiplier", "table_data",
        }
        tally = conversion["properties"]["table_data"]
        assert len(tally["required"]) == 4

    def test_matches_model_keys(self, sample_report):
        def keys(schema):
            return set(schema["properties"])

        wire = sample_report.to_dict()
        for section in SECTION_KEYS:
            assert keys(RESPONSE_SCHEMA["properties"][section]) == set(wire[section])
