"""Session state controller — sequences upload, extraction, review, download.

A session moves through three states::

    IDLE --analyze--> ANALYZING --success--> REVIEW --reset--> IDLE
                          |
                          +------failure-----> IDLE

Files and the customer name can only change while IDLE.  Every analysis
carries the session epoch at the time it started; ``reset()`` bumps the
epoch, so a result that arrives for an abandoned analysis is discarded
instead of moving the session to REVIEW.

The API key is read through an injected :class:`CredentialStore`, so the
controller works the same with an in-memory store (tests) or the YAML file
store used by the CLI.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

import yaml

from reportgen.extractor.client import ExtractionClient
from reportgen.generator.pptx_builder import ReportDeckBuilder
from reportgen.processor.ingestion import UploadedFile, normalize_files
from reportgen.schema.models import ReportData

logger = logging.getLogger(__name__)

MISSING_CREDENTIAL_MESSAGE = "API Key is required to proceed."
MISSING_INPUT_MESSAGE = "Please enter a customer name and upload files."

# Substrings of an upstream error that point at a bad or missing key.
CREDENTIAL_ERROR_MARKERS = ("400", "401", "403", "API key")

CREDENTIAL_KEY = "gemini_api_key"


class SessionState(Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    REVIEW = "review"


class SessionStateError(RuntimeError):
    """An operation was requested in a state that does not allow it."""


# ---------------------------------------------------------------------------
# Credential stores
# ---------------------------------------------------------------------------

class CredentialStore(Protocol):
    def get(self) -> str | None: ...

    def set(self, value: str) -> None: ...

    def clear(self) -> None: ...


class MemoryCredentialStore:
    """Keeps the key in memory only."""

    def __init__(self, value: str | None = None) -> None:
        self._value = value

    def get(self) -> str | None:
        return self._value

    def set(self, value: str) -> None:
        self._value = value

    def clear(self) -> None:
        self._value = None


class FileCredentialStore:
    """Persists the key in a small YAML file readable only by the owner."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def get(self) -> str | None:
        if not self.path.exists():
            return None
        with open(self.path) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            return None
        value = data.get(CREDENTIAL_KEY)
        return str(value) if value else None

    def set(self, value: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            yaml.safe_dump({CREDENTIAL_KEY: value}, f)
        # O_CREAT's mode only applies to new files
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AnalysisTicket:
    """Frozen inputs of one analysis plus the epoch it belongs to."""
    epoch: int
    files: tuple[UploadedFile, ...]
    customer_name: str
    credential: str


class ReportSession:
    """Drives one operator's upload → analyze → review → download flow.

    Parameters
    ----------
    client : ExtractionClient
        Performs the model call.
    credentials : CredentialStore
        Source of the API key.
    builder : ReportDeckBuilder, optional
        Renders the deck on download.
    """

    def __init__(self, client: ExtractionClient, credentials: CredentialStore,
                 builder: ReportDeckBuilder | None = None) -> None:
        self.client = client
        self.credentials = credentials
        self.builder = builder or ReportDeckBuilder()

        self.state = SessionState.IDLE
        self.files: list[UploadedFile] = []
        self.customer_name = ""
        self.result: ReportData | None = None
        self.error: str | None = None
        self.warnings: list[str] = []
        self.needs_credential = not self.credential
        self.epoch = 0

    # ------------------------------------------------------------------
    # Credential
    # ------------------------------------------------------------------

    @property
    def credential(self) -> str:
        return (self.credentials.get() or "").strip()

    def save_credential(self, value: str) -> None:
        self.credentials.set(value.strip())
        self.needs_credential = not self.credential
        self.error = None

    def clear_credential(self) -> None:
        self.credentials.clear()
        self.needs_credential = True

    # ------------------------------------------------------------------
    # Inputs (IDLE only)
    # ------------------------------------------------------------------

    def _require(self, state: SessionState, action: str) -> None:
        if self.state != state:
            raise SessionStateError(
                f"Cannot {action} while {self.state.value}"
            )

    def add_file(self, upload: UploadedFile) -> None:
        self._require(SessionState.IDLE, "add files")
        self.files.append(upload)

    def remove_file(self, index: int) -> UploadedFile:
        self._require(SessionState.IDLE, "remove files")
        return self.files.pop(index)

    def set_customer_name(self, name: str) -> None:
        self._require(SessionState.IDLE, "change the customer name")
        self.customer_name = name

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def check_preconditions(self) -> str | None:
        """Return the message for the first unmet precondition, if any."""
        if not self.credential:
            return MISSING_CREDENTIAL_MESSAGE
        if not self.files or not self.customer_name.strip():
            return MISSING_INPUT_MESSAGE
        return None

    def begin_analysis(self) -> AnalysisTicket | None:
        """Move IDLE → ANALYZING, or record why that is not possible."""
        self._require(SessionState.IDLE, "start an analysis")
        problem = self.check_preconditions()
        if problem is not None:
            self.error = problem
            if problem == MISSING_CREDENTIAL_MESSAGE:
                self.needs_credential = True
            return None

        self.error = None
        self.warnings = []
        self.state = SessionState.ANALYZING
        return AnalysisTicket(
            epoch=self.epoch,
            files=tuple(self.files),
            customer_name=self.customer_name,
            credential=self.credential,
        )

    def run_extraction(self, ticket: AnalysisTicket) -> ReportData:
        """Normalize the ticket's files and call the extraction client."""
        normalized = normalize_files(ticket.files,
                                     self.client.config.max_excel_sheets)
        if self._is_current(ticket):
            self.warnings = list(normalized.warnings)
        return self.client.extract(normalized.fragments, ticket.customer_name,
                                   ticket.credential)

    def complete_analysis(self, ticket: AnalysisTicket, data: ReportData) -> bool:
        """Apply a successful result.  Returns False if it was discarded."""
        if not self._is_current(ticket):
            logger.info("Discarding result of stale analysis (epoch %d, now %d)",
                        ticket.epoch, self.epoch)
            return False
        self.result = data
        self.state = SessionState.REVIEW
        return True

    def fail_analysis(self, ticket: AnalysisTicket, exc: BaseException) -> bool:
        """Apply a failure.  Returns False if it was discarded."""
        if not self._is_current(ticket):
            logger.info("Discarding failure of stale analysis (epoch %d, now %d)",
                        ticket.epoch, self.epoch)
            return False
        message = str(exc) or type(exc).__name__
        self.error = f"Failed to analyze: {message}"
        if any(marker in message for marker in CREDENTIAL_ERROR_MARKERS):
            self.needs_credential = True
        self.state = SessionState.IDLE
        return True

    def analyze(self) -> bool:
        """Run a full analysis.  Returns True when the session reached REVIEW.

        Failures are reduced to :attr:`error`; files and customer name are
        kept so the operator can simply try again.
        """
        ticket = self.begin_analysis()
        if ticket is None:
            return False
        try:
            data = self.run_extraction(ticket)
        except Exception as exc:
            logger.error("Analysis failed: %s", exc)
            self.fail_analysis(ticket, exc)
            return False
        return self.complete_analysis(ticket, data)

    def _is_current(self, ticket: AnalysisTicket) -> bool:
        return (ticket.epoch == self.epoch
                and self.state == SessionState.ANALYZING)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def render(self) -> bytes:
        """Render the reviewed report to PPTX bytes (state unchanged)."""
        self._require(SessionState.REVIEW, "render")
        return self.builder.build(self.result, self.customer_name)

    def download(self, directory: str | Path) -> Path:
        """Write ``<customer>_Report.pptx`` into *directory* (state unchanged)."""
        self._require(SessionState.REVIEW, "download")
        return self.builder.build_to_file(self.result, self.customer_name,
                                          directory)

    def reset(self) -> None:
        """Discard everything and return to IDLE from any state."""
        self.files = []
        self.customer_name = ""
        self.result = None
        self.error = None
        self.warnings = []
        self.state = SessionState.IDLE
        self.epoch += 1
