"""CLI entry point for the marketing report generator.

Orchestrates the full pipeline: file normalization, model extraction,
report review files, PPTX generation, and QA validation.

Usage::

    # Analyze source files and build the deck
    reportgen analyze ga4.png export.csv stats.xlsx \\
        --customer Acme --report-out output/acme.yaml \\
        --output-dir output/

    # Re-render a reviewed (possibly hand-edited) report
    reportgen render --report output/acme.yaml --customer Acme \\
        --output-dir output/

    # Validate an existing deck against its report
    reportgen validate --pptx output/Acme_Report.pptx \\
        --report output/acme.yaml --customer Acme

    # Store, show (masked), or clear the API key
    reportgen credential set AIzaSy...
    reportgen credential show
    reportgen credential clear
"""

import argparse
import logging
import os
import sys
from pathlib import Path

from reportgen.config import API_KEY_ENV, default_credentials_path, load_config
from reportgen.extractor.client import ExtractionClient
from reportgen.generator.pptx_builder import ReportDeckBuilder
from reportgen.processor.ingestion import UploadedFile
from reportgen.qa.validator import ReportValidator
from reportgen.schema.loader import load_report, save_report
from reportgen.schema.models import ReportParseError
from reportgen.session import (
    FileCredentialStore,
    MemoryCredentialStore,
    ReportSession,
)


# ---------------------------------------------------------------------------
# Credential lookup
# ---------------------------------------------------------------------------

def _credential_store(args):
    """Pick the credential source: --api-key, then env, then the key file."""
    api_key = getattr(args, "api_key", None)
    if api_key:
        return MemoryCredentialStore(api_key)
    env_key = os.environ.get(API_KEY_ENV)
    if env_key:
        return MemoryCredentialStore(env_key)
    return FileCredentialStore(default_credentials_path())


def _mask(value: str) -> str:
    if len(value) <= 8:
        return "*" * len(value)
    return f"{value[:4]}{'*' * (len(value) - 8)}{value[-4:]}"


# ---------------------------------------------------------------------------
# Shared steps
# ---------------------------------------------------------------------------

def _load_report_file(path):
    p = Path(path)
    if not p.exists():
        _error(f"Report file not found: {p}")
    try:
        return load_report(p)
    except ReportParseError as exc:
        _error(f"Invalid report file {p}: {exc}")


def _run_qa(args, report, customer_name, pptx_bytes):
    """Validate the rendered deck; exit unless it passes or --force is set."""
    if not args.skip_qa:
        _info("Running QA validation...")
        qa_result = ReportValidator().validate(pptx_bytes, report, customer_name)
        if qa_result.passed:
            _info(qa_result.summary())
        else:
            _warn(qa_result.summary())
            if args.verbose:
                print(qa_result.report(), file=sys.stderr)
            if not args.force:
                _error("QA validation failed. Use --force to write anyway, "
                       "or --skip-qa to skip validation.")
    else:
        _info("QA validation skipped (--skip-qa)")


def _report_written(output):
    _info(f"Written: {output} ({output.stat().st_size:,} bytes)")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_analyze(args):
    """Extract a report from source files and build the deck."""
    config = load_config(args.config)
    session = ReportSession(ExtractionClient(config), _credential_store(args))

    for path in args.files:
        p = Path(path)
        if not p.exists():
            _error(f"Source file not found: {p}")
        session.add_file(UploadedFile.from_path(p))
    session.set_customer_name(args.customer)

    _info(f"Analyzing {len(session.files)} file(s) for {args.customer!r} "
          f"with {config.model}...")
    ok = session.analyze()

    for w in session.warnings:
        _warn(w)

    if not ok:
        if session.needs_credential:
            _warn("Check the API key: pass --api-key, set "
                  f"{API_KEY_ENV}, or run 'reportgen credential set <KEY>'.")
        _error(session.error or "Analysis failed.")

    if args.report_out:
        save_report(session.result, args.report_out)
        _info(f"Report data written: {args.report_out}")

    _info("Building PPTX...")
    pptx_bytes = session.render()
    _run_qa(args, session.result, session.customer_name, pptx_bytes)
    _report_written(session.download(args.output_dir))


def cmd_render(args):
    """Render a saved report file to PPTX."""
    report = _load_report_file(args.report)
    _info("Building PPTX...")
    builder = ReportDeckBuilder()
    pptx_bytes = builder.build(report, args.customer)
    _run_qa(args, report, args.customer, pptx_bytes)
    _report_written(builder.build_to_file(report, args.customer,
                                          args.output_dir))


def cmd_validate(args):
    """Validate an existing PPTX against its report file."""
    pptx_path = Path(args.pptx)
    if not pptx_path.exists():
        _error(f"PPTX file not found: {pptx_path}")
    report = _load_report_file(args.report)

    _info(f"Validating {pptx_path}")
    qa_result = ReportValidator().validate(pptx_path.read_bytes(), report,
                                           args.customer)
    print(qa_result.report())
    sys.exit(0 if qa_result.passed else 1)


def cmd_credential(args):
    """Manage the stored API key."""
    store = FileCredentialStore(default_credentials_path())
    if args.action == "set":
        value = args.value.strip()
        if not value:
            _error("API key must not be empty.")
        store.set(value)
        _info(f"API key saved to {store.path}")
    elif args.action == "clear":
        store.clear()
        _info("API key cleared")
    else:
        value = store.get()
        print(_mask(value) if value else "(not set)")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _info(msg):
    print(f"  {msg}", file=sys.stderr)


def _warn(msg):
    print(f"  WARNING: {msg}", file=sys.stderr)


def _error(msg):
    print(f"  ERROR: {msg}", file=sys.stderr)
    sys.exit(1)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="  %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reportgen",
        description="Generate marketing report decks from dashboards and data exports.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- analyze ----
    ana = subparsers.add_parser(
        "analyze",
        help="Extract report data from source files and build the PPTX.",
    )
    ana.add_argument(
        "files",
        nargs="+",
        help="Source files (images, PDF, CSV, JSON, Excel).",
    )
    _add_customer_arg(ana)
    ana.add_argument(
        "--api-key",
        dest="api_key",
        help=f"API key (default: ${API_KEY_ENV}, then the stored key).",
    )
    ana.add_argument(
        "--config",
        help="Path to a YAML extraction config.",
    )
    ana.add_argument(
        "--report-out",
        dest="report_out",
        help="Write the extracted report (YAML, or JSON by extension).",
    )
    _add_output_args(ana)
    ana.set_defaults(func=cmd_analyze)

    # ---- render ----
    ren = subparsers.add_parser(
        "render",
        help="Render a saved report file to PPTX.",
    )
    ren.add_argument(
        "--report",
        required=True,
        help="Report file written by 'analyze --report-out'.",
    )
    _add_customer_arg(ren)
    _add_output_args(ren)
    ren.set_defaults(func=cmd_render)

    # ---- validate ----
    val = subparsers.add_parser(
        "validate",
        help="Validate an existing PPTX against its report file.",
    )
    val.add_argument(
        "--pptx",
        required=True,
        help="Path to the PPTX file to validate.",
    )
    val.add_argument(
        "--report",
        required=True,
        help="Report file the deck was rendered from.",
    )
    val.add_argument(
        "--customer",
        default=None,
        help="Also check the customer name on the cover.",
    )
    val.set_defaults(func=cmd_validate)

    # ---- credential ----
    cred = subparsers.add_parser(
        "credential",
        help="Store, show, or clear the API key.",
    )
    actions = cred.add_subparsers(dest="action", required=True)
    cred_set = actions.add_parser("set", help="Save an API key.")
    cred_set.add_argument("value", help="The API key.")
    actions.add_parser("clear", help="Remove the saved API key.")
    actions.add_parser("show", help="Show the saved API key (masked).")
    cred.set_defaults(func=cmd_credential)

    return parser


def _add_customer_arg(parser):
    parser.add_argument(
        "--customer",
        required=True,
        help="Customer name (cover slide and output file name).",
    )


def _add_output_args(parser):
    """Add output / QA args to a subparser."""
    parser.add_argument(
        "-o", "--output-dir",
        dest="output_dir",
        default=".",
        help="Directory for <customer>_Report.pptx (default: current).",
    )
    parser.add_argument(
        "--skip-qa",
        action="store_true",
        default=False,
        help="Skip QA validation after generation.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Write output even if QA validation fails.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Show detailed output (debug logging, full QA report).",
    )


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv=None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(getattr(args, "verbose", False))
    args.func(args)


if __name__ == "__main__":
    main()
