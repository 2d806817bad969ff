"""Shared fixtures: a complete report payload as the model would return it."""

import copy

import pytest

from reportgen.schema.models import ReportData

SAMPLE_REPORT = {
    "slide_4_summary": {
        "title": "視聴データサマリ",
        "insight": "10月は視聴回数が前月比で大きく伸びました。",
        "headers": ["8月", "9月", "10月"],
        "metrics": [
            {"label": "Uploads", "values": [12, 15, 18]},
            {"label": "Views", "values": [10500, 12000, 18250]},
            {"label": "CTR", "values": ["1.2%", "1.5%", "2.1%"]},
        ],
    },
    "slide_5_page_ranking": {
        "insight": "採用ページの視聴が最も多い。",
        "ranking": [
            {"rank": 1, "url": "https://example.com/recruit", "views": 5400},
            {"rank": 2, "url": "https://example.com/", "views": 3100},
        ],
    },
    "slide_7_video_ranking": {
        "insight": "ショート動画がクリックを牽引。",
        "ranking": [
            {"rank": 1, "title": "社員インタビュー", "views": 4200},
            {"rank": 2, "title": "オフィス紹介", "views": 2800},
            {"rank": 3, "title": "1日の流れ", "views": 1900},
        ],
    },
    "slide_10_engagement": {
        "insight": "視聴者は平均セッション時間が2.9倍。",
        "metrics": {
            "avg_session_duration_multiplier": "2.9",
            "pv_per_user_multiplier": "1.8",
            "return_rate_multiplier": "1.4",
            "session_pv_multiplier": "1.3",
        },
        "table_rows": [
            {"metric_name": "平均セッション時間", "viewer_value": "180秒",
             "non_viewer_value": "62秒", "multiplier": "2.9"},
            {"metric_name": "ユーザーあたりPV", "viewer_value": "5.4",
             "non_viewer_value": "3.0", "multiplier": "1.8"},
        ],
    },
    "slide_11_conversion": {
        "insight": "視聴者のCVRは9.1倍。",
        "viewer_cvr": "9.1%",
        "non_viewer_cvr": "1.0%",
        "multiplier": "9.1",
        "table_data": {
            "total_users_viewer": 1200,
            "total_users_non_viewer": 54000,
            "cv_users_viewer": 109,
            "cv_users_non_viewer": 540,
        },
    },
}


@pytest.fixture
def report_dict():
    """A fresh, mutable copy of the sample payload."""
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def sample_report(report_dict):
    return ReportData.from_dict(report_dict)
