"""Configuration for the extraction pipeline.

Settings live in a small YAML file so they can be version-controlled next
to the reports they produce::

    model: gemini-3-pro-preview
    temperature: 0.1
    max_attempts: 3
    backoff_seconds: 5.0
    max_excel_sheets: 3

Any key may be omitted.  ``REPORTGEN_MODEL`` in the environment overrides
the model name.
"""

import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

import yaml

DEFAULT_MODEL = "gemini-3-pro-preview"

CREDENTIALS_ENV = "REPORTGEN_CREDENTIALS"
API_KEY_ENV = "GEMINI_API_KEY"
MODEL_ENV = "REPORTGEN_MODEL"


@dataclass(frozen=True)
class ExtractionConfig:
    """Model and retry settings passed explicitly into the extractor."""
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    max_attempts: int = 3           # 1 initial + 2 retries
    backoff_seconds: float = 5.0    # wait = backoff_seconds * attempt
    max_excel_sheets: int = 3

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must not be negative")
        if self.max_excel_sheets < 1:
            raise ValueError("max_excel_sheets must be at least 1")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict | None) -> "ExtractionConfig":
        d = d or {}
        known = {f.name for f in fields(cls)}
        unknown = set(d) - known
        if unknown:
            raise ValueError(
                f"Unknown config key(s): {', '.join(sorted(unknown))}. "
                f"Valid keys: {', '.join(sorted(known))}"
            )
        return cls(**d)

    def with_env(self, environ=None) -> "ExtractionConfig":
        """Apply environment overrides."""
        environ = os.environ if environ is None else environ
        model = environ.get(MODEL_ENV)
        if model:
            return replace(self, model=model)
        return self


def save_config(config: ExtractionConfig, path: str | Path) -> None:
    """Serialize an ExtractionConfig to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config(path: str | Path | None = None) -> ExtractionConfig:
    """Load an ExtractionConfig from YAML, or defaults when *path* is None."""
    if path is None:
        return ExtractionConfig().with_env()
    with open(Path(path)) as f:
        data = yaml.safe_load(f)
    return ExtractionConfig.from_dict(data).with_env()


def default_credentials_path() -> Path:
    """Location of the stored API key file."""
    override = os.environ.get(CREDENTIALS_ENV)
    if override:
        return Path(override)
    return Path.home() / ".config" / "reportgen" / "credentials.yaml"
