"""Extraction client — turns prompt fragments into a ReportData via Gemini.

Builds one multimodal request (system instruction, the normalized source
fragments in upload order, a per-call instruction naming the customer),
constrains the answer with :data:`RESPONSE_SCHEMA`, and parses the JSON
text into a :class:`ReportData`.

Rate-limit failures (messages mentioning ``429``, ``RESOURCE_EXHAUSTED`` or
``Quota exceeded``) are retried with linear backoff: 5 s before the second
attempt, 10 s before the third.  Every other failure propagates at once.

Usage::

    from reportgen.config import ExtractionConfig
    from reportgen.extractor.client import ExtractionClient

    client = ExtractionClient(ExtractionConfig())
    report = client.extract(fragments, "Acme", api_key)
"""

import json
import logging
import time

from google import genai
from google.genai import types

from reportgen.config import ExtractionConfig
from reportgen.processor.ingestion import Fragment, InlineBinary, InlineText
from reportgen.schema.models import ReportData, ReportParseError
from reportgen.schema.response_schema import RESPONSE_SCHEMA

from .prompts import SYSTEM_INSTRUCTION, build_request_prompt

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "RESOURCE_EXHAUSTED", "Quota exceeded")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ExtractionError(Exception):
    """Base class for extraction failures raised by this module."""


class CredentialMissingError(ExtractionError):
    """No API key was supplied; raised before any network call."""


class EmptyResponseError(ExtractionError):
    """The model answered without a text body."""


class RetriesExhaustedError(ExtractionError):
    """Every attempt was rejected for rate limiting."""


def is_rate_limit_error(exc: BaseException) -> bool:
    """True when the error message carries a rate-limit marker."""
    message = str(exc)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


# ---------------------------------------------------------------------------
# Request assembly
# ---------------------------------------------------------------------------

def fragment_to_part(fragment: Fragment) -> types.Part:
    """Convert a normalized fragment into a request part."""
    if isinstance(fragment, InlineBinary):
        return types.Part.from_bytes(data=fragment.data,
                                     mime_type=fragment.media_type)
    if isinstance(fragment, InlineText):
        return types.Part.from_text(text=fragment.text)
    raise TypeError(f"Unknown fragment type: {type(fragment).__name__}")


def build_contents(fragments, customer_name: str) -> types.Content:
    """Assemble the user turn: fragments in order, then the instruction."""
    parts = [fragment_to_part(f) for f in fragments]
    parts.append(types.Part.from_text(text=build_request_prompt(customer_name)))
    return types.Content(role="user", parts=parts)


def parse_report(text: str) -> ReportData:
    """Parse the model's JSON text into a ReportData."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportParseError(f"Model response is not valid JSON: {exc}") from exc
    return ReportData.from_dict(data)


# ---------------------------------------------------------------------------
# ExtractionClient
# ---------------------------------------------------------------------------

class ExtractionClient:
    """Sends normalized fragments to the model and returns a ReportData.

    Parameters
    ----------
    config : ExtractionConfig
        Model name, temperature, and retry budget.
    client_factory : callable
        Builds an API client from ``api_key=``.  Defaults to
        ``genai.Client``.
    sleep : callable
        Called with the backoff delay in seconds.  Defaults to
        ``time.sleep``.
    """

    def __init__(self, config: ExtractionConfig | None = None,
                 client_factory=None, sleep=None) -> None:
        self.config = config or ExtractionConfig()
        self._client_factory = client_factory or genai.Client
        self._sleep = sleep or time.sleep

    def generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
            temperature=self.config.temperature,
        )

    def extract(self, fragments, customer_name: str,
                credential: str) -> ReportData:
        """Run the extraction, retrying only on rate-limit errors.

        Raises
        ------
        CredentialMissingError
            *credential* is empty or blank.
        EmptyResponseError
            The call succeeded but returned no text.
        ReportParseError
            The text could not be parsed into a ReportData.
        RetriesExhaustedError
            All attempts were rate limited.
        Exception
            Any other upstream error, unchanged.
        """
        api_key = (credential or "").strip()
        if not api_key:
            raise CredentialMissingError(
                "API Key is missing. Please provide a valid "
                "Google AI Studio API Key."
            )

        client = self._client_factory(api_key=api_key)
        contents = build_contents(fragments, customer_name)
        config = self.generation_config()
        max_attempts = self.config.max_attempts

        last_error = None
        for attempt in range(1, max_attempts + 1):
            try:
                response = client.models.generate_content(
                    model=self.config.model,
                    contents=contents,
                    config=config,
                )
            except Exception as exc:
                if not is_rate_limit_error(exc):
                    logger.error("Extraction failed (attempt %d): %s",
                                 attempt, exc)
                    raise
                last_error = exc
                if attempt < max_attempts:
                    wait = self.config.backoff_seconds * attempt
                    logger.warning(
                        "Quota exceeded (attempt %d/%d). Retrying in %.1fs...",
                        attempt, max_attempts, wait,
                    )
                    self._sleep(wait)
                continue

            text = getattr(response, "text", None)
            if not text:
                raise EmptyResponseError("No text response from the model")
            report = parse_report(text)
            logger.info("Extraction succeeded on attempt %d", attempt)
            return report

        raise RetriesExhaustedError(
            f"Failed to analyze data after {max_attempts} attempts "
            f"due to quota limits."
        ) from last_error


def extract_report(fragments, customer_name: str, credential: str,
                   config: ExtractionConfig | None = None) -> ReportData:
    """One-shot convenience: extract with a default client."""
    return ExtractionClient(config).extract(fragments, customer_name, credential)
