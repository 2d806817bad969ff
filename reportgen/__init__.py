"""Marketing report generator — source files in, PPTX report deck out."""

__version__ = "0.1.0"
