"""Tests for the CLI entry point (reportgen.cli).

Covers argument parsing, credential lookup, the analyze pipeline with a
mocked extraction client, render/validate against saved report files, and
the credential subcommand.  The model is never called.
"""

import argparse
from unittest.mock import MagicMock, patch

import pytest

from reportgen.cli import (
    _credential_store,
    _mask,
    build_parser,
    cmd_analyze,
    cmd_render,
    main,
)
from reportgen.config import ExtractionConfig
from reportgen.extractor.client import RetriesExhaustedError
from reportgen.generator.pptx_builder import ReportDeckBuilder
from reportgen.schema.loader import load_report, save_report
from reportgen.session import (
    FileCredentialStore,
    MemoryCredentialStore,
    ReportSession,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def parser():
    return build_parser()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the real key file and environment out of every test."""
    monkeypatch.setenv("REPORTGEN_CREDENTIALS", str(tmp_path / "cred.yaml"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("REPORTGEN_MODEL", raising=False)


@pytest.fixture
def source_png(tmp_path):
    p = tmp_path / "ga4.png"
    p.write_bytes(b"\x89PNGfake")
    return p


@pytest.fixture
def report_file(tmp_path, sample_report):
    p = tmp_path / "acme.yaml"
    save_report(sample_report, p)
    return p


def _analyze_args(files, output_dir, **overrides):
    args = argparse.Namespace(
        files=[str(f) for f in files],
        customer="Acme",
        api_key="key-123",
        config=None,
        report_out=None,
        output_dir=str(output_dir),
        skip_qa=False, force=False, verbose=False,
    )
    for k, v in overrides.items():
        setattr(args, k, v)
    return args


def _mock_client(MockClient, report=None, error=None):
    client = MockClient.return_value
    client.config = ExtractionConfig()
    if error is not None:
        client.extract.side_effect = error
    else:
        client.extract.return_value = report
    return client


# ===================================================================
# Parser tests
# ===================================================================

class TestParser:
    def test_analyze_minimal(self, parser):
        args = parser.parse_args(["analyze", "a.png", "--customer", "Acme"])
        assert args.command == "analyze"
        assert args.files == ["a.png"]
        assert args.customer == "Acme"
        assert args.output_dir == "."
        assert args.api_key is None
        assert args.skip_qa is False
        assert args.force is False

    def test_analyze_many_files_and_flags(self, parser):
        args = parser.parse_args([
            "analyze", "a.png", "b.csv", "c.xlsx",
            "--customer", "Acme", "--api-key", "k",
            "--report-out", "r.yaml", "-o", "out",
            "--skip-qa", "--force", "-v",
        ])
        assert args.files == ["a.png", "b.csv", "c.xlsx"]
        assert args.api_key == "k"
        assert args.report_out == "r.yaml"
        assert args.output_dir == "out"
        assert args.skip_qa and args.force and args.verbose

    def test_analyze_requires_files(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["analyze", "--customer", "Acme"])

    def test_analyze_requires_customer(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args(["analyze", "a.png"])

    def test_render(self, parser):
        args = parser.parse_args(["render", "--report", "r.yaml",
                                  "--customer", "Acme"])
        assert args.report == "r.yaml"

    def test_validate_customer_optional(self, parser):
        args = parser.parse_args(["validate", "--pptx", "d.pptx",
                                  "--report", "r.yaml"])
        assert args.customer is None

    def test_credential_set(self, parser):
        args = parser.parse_args(["credential", "set", "abc"])
        assert args.action == "set"
        assert args.value == "abc"

    def test_no_command_fails(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])


# ===================================================================
# Credential lookup
# ===================================================================

class TestCredentialStore:
    def test_flag_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        store = _credential_store(argparse.Namespace(api_key="from-flag"))
        assert isinstance(store, MemoryCredentialStore)
        assert store.get() == "from-flag"

    def test_env_before_file(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        store = _credential_store(argparse.Namespace(api_key=None))
        assert store.get() == "from-env"

    def test_file_fallback(self, tmp_path):
        store = _credential_store(argparse.Namespace(api_key=None))
        assert isinstance(store, FileCredentialStore)
        assert store.path == tmp_path / "cred.yaml"

    def test_mask(self):
        assert _mask("AIzaSy1234567890") == "AIza********7890"
        assert _mask("short") == "*****"


# ===================================================================
# analyze
# ===================================================================

class TestCmdAnalyze:
    def test_full_pipeline(self, tmp_path, source_png, sample_report):
        out = tmp_path / "out"
        report_out = tmp_path / "acme.yaml"
        with patch("reportgen.cli.ExtractionClient") as MockClient:
            client = _mock_client(MockClient, report=sample_report)
            cmd_analyze(_analyze_args([source_png], out,
                                      report_out=str(report_out)))

        assert (out / "Acme_Report.pptx").exists()
        assert load_report(report_out) == sample_report
        fragments, name, credential = client.extract.call_args.args
        assert len(fragments) == 1
        assert name == "Acme"
        assert credential == "key-123"

    def test_deck_written_by_session(self, tmp_path, source_png, sample_report):
        out = tmp_path / "out"
        with patch("reportgen.cli.ExtractionClient") as MockClient, \
             patch.object(ReportSession, "download", autospec=True,
                          side_effect=ReportSession.download) as download:
            _mock_client(MockClient, report=sample_report)
            cmd_analyze(_analyze_args([source_png], out, customer="A/B商事"))

        download.assert_called_once()
        assert (out / "A_B商事_Report.pptx").exists()
        assert list(tmp_path.glob("out/A/*")) == []

    def test_missing_source_exits(self, tmp_path):
        with patch("reportgen.cli.ExtractionClient"):
            with pytest.raises(SystemExit):
                cmd_analyze(_analyze_args([tmp_path / "nope.png"], tmp_path))

    def test_missing_credential_exits(self, tmp_path, source_png, capsys):
        with patch("reportgen.cli.ExtractionClient") as MockClient:
            client = _mock_client(MockClient)
            with pytest.raises(SystemExit):
                cmd_analyze(_analyze_args([source_png], tmp_path, api_key=None))
        client.extract.assert_not_called()
        assert "API Key is required to proceed." in capsys.readouterr().err

    def test_extraction_failure_exits(self, tmp_path, source_png, capsys):
        with patch("reportgen.cli.ExtractionClient") as MockClient:
            _mock_client(MockClient, error=RetriesExhaustedError("quota"))
            with pytest.raises(SystemExit):
                cmd_analyze(_analyze_args([source_png], tmp_path / "out"))
        assert "Failed to analyze: quota" in capsys.readouterr().err
        assert not (tmp_path / "out").exists()

    def test_unsupported_file_warned(self, tmp_path, source_png, sample_report,
                                     capsys):
        video = tmp_path / "clip.mp4"
        video.write_bytes(b"\x00")
        with patch("reportgen.cli.ExtractionClient") as MockClient:
            _mock_client(MockClient, report=sample_report)
            cmd_analyze(_analyze_args([video, source_png], tmp_path / "out"))
        assert "clip.mp4" in capsys.readouterr().err


# ===================================================================
# render / validate
# ===================================================================

class TestCmdRender:
    def test_render_writes_deck(self, tmp_path, report_file):
        args = argparse.Namespace(
            report=str(report_file), customer="Acme",
            output_dir=str(tmp_path / "out"),
            skip_qa=False, force=False, verbose=False,
        )
        cmd_render(args)
        assert (tmp_path / "out" / "Acme_Report.pptx").exists()

    def test_render_keeps_traversal_name_inside_output_dir(self, tmp_path,
                                                          report_file):
        args = argparse.Namespace(
            report=str(report_file), customer="../escape",
            output_dir=str(tmp_path / "out"),
            skip_qa=True, force=False, verbose=False,
        )
        cmd_render(args)
        assert (tmp_path / "out" / ".._escape_Report.pptx").exists()
        assert not (tmp_path / "escape_Report.pptx").exists()

    def test_missing_report_exits(self, tmp_path):
        args = argparse.Namespace(
            report=str(tmp_path / "none.yaml"), customer="Acme",
            output_dir=str(tmp_path), skip_qa=True, force=False, verbose=False,
        )
        with pytest.raises(SystemExit):
            cmd_render(args)

    def test_invalid_report_exits(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("slide_4_summary: {}\n", encoding="utf-8")
        args = argparse.Namespace(
            report=str(bad), customer="Acme",
            output_dir=str(tmp_path), skip_qa=True, force=False, verbose=False,
        )
        with pytest.raises(SystemExit):
            cmd_render(args)

    def test_qa_fail_exits_without_writing(self, tmp_path, report_file):
        qa = MagicMock()
        qa.passed = False
        qa.summary.return_value = "QA FAIL: 1 error(s), 0 warning(s)"
        args = argparse.Namespace(
            report=str(report_file), customer="Acme",
            output_dir=str(tmp_path / "out"),
            skip_qa=False, force=False, verbose=False,
        )
        with patch("reportgen.cli.ReportValidator") as MockValidator:
            MockValidator.return_value.validate.return_value = qa
            with pytest.raises(SystemExit):
                cmd_render(args)
        assert not (tmp_path / "out" / "Acme_Report.pptx").exists()


class TestCmdValidate:
    def test_valid_deck_exits_zero(self, tmp_path, report_file, sample_report):
        deck = tmp_path / "deck.pptx"
        deck.write_bytes(ReportDeckBuilder().build(sample_report, "Acme"))
        with pytest.raises(SystemExit) as excinfo:
            main(["validate", "--pptx", str(deck), "--report", str(report_file),
                  "--customer", "Acme"])
        assert excinfo.value.code == 0

    def test_wrong_customer_exits_one(self, tmp_path, report_file, sample_report):
        deck = tmp_path / "deck.pptx"
        deck.write_bytes(ReportDeckBuilder().build(sample_report, "Acme"))
        with pytest.raises(SystemExit) as excinfo:
            main(["validate", "--pptx", str(deck), "--report", str(report_file),
                  "--customer", "Other"])
        assert excinfo.value.code == 1


# ===================================================================
# credential
# ===================================================================

class TestCmdCredential:
    def test_set_show_clear(self, tmp_path, capsys):
        main(["credential", "set", "  AIzaSy1234567890  "])
        assert FileCredentialStore(tmp_path / "cred.yaml").get() == "AIzaSy1234567890"

        main(["credential", "show"])
        assert capsys.readouterr().out.strip() == "AIza********7890"

        main(["credential", "clear"])
        main(["credential", "show"])
        assert capsys.readouterr().out.strip() == "(not set)"

    def test_set_blank_exits(self):
        with pytest.raises(SystemExit):
            main(["credential", "set", "   "])
