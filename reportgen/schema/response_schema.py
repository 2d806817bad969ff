"""Response schema handed to the model alongside the extraction request.

Mirrors :class:`reportgen.schema.models.ReportData` field for field.  Every
property is listed in ``required`` so the model has to fill each section,
even when the sources are thin.
"""

_STRING = {"type": "STRING"}
_NUMBER = {"type": "NUMBER"}
_INTEGER = {"type": "INTEGER"}


def _object(properties: dict) -> dict:
    return {
        "type": "OBJECT",
        "properties": properties,
        "required": list(properties),
    }


def _array(items: dict) -> dict:
    return {"type": "ARRAY", "items": items}


_SUMMARY = _object({
    "title": _STRING,
    "insight": _STRING,
    "headers": _array(_STRING),
    "metrics": _array(_object({
        "label": _STRING,
        "values": _array(_NUMBER),
    })),
})

_PAGE_RANKING = _object({
    "insight": _STRING,
    "ranking": _array(_object({
        "rank": _INTEGER,
        "url": _STRING,
        "views": _INTEGER,
    })),
})

_VIDEO_RANKING = _object({
    "insight": _STRING,
    "ranking": _array(_object({
        "rank": _INTEGER,
        "title": _STRING,
        "views": _INTEGER,
    })),
})

_ENGAGEMENT = _object({
    "insight": _STRING,
    "metrics": _object({
        "avg_session_duration_multiplier": _STRING,
        "pv_per_user_multiplier": _STRING,
        "return_rate_multiplier": _STRING,
        "session_pv_multiplier": _STRING,
    }),
    "table_rows": _array(_object({
        "metric_name": _STRING,
        "viewer_value": _STRING,
        "non_viewer_value": _STRING,
        "multiplier": _STRING,
    })),
})

_CONVERSION = _object({
    "insight": _STRING,
    "viewer_cvr": _STRING,
    "non_viewer_cvr": _STRING,
    "multiplier": _STRING,
    "table_data": _object({
        "total_users_viewer": _INTEGER,
        "total_users_non_viewer": _INTEGER,
        "cv_users_viewer": _INTEGER,
        "cv_users_non_viewer": _INTEGER,
    }),
})

RESPONSE_SCHEMA = _object({
    "slide_4_summary": _SUMMARY,
    "slide_5_page_ranking": _PAGE_RANKING,
    "slide_7_video_ranking": _VIDEO_RANKING,
    "slide_10_engagement": _ENGAGEMENT,
    "slide_11_conversion": _CONVERSION,
})
