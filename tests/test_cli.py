"""
Tests for command line helpers.
"""

import json

import pytest

from paradoc import cli
from paradoc.config import ParadocConfig
from paradoc.models import ConversionResult

from test_models import _document


@pytest.mark.parametrize("raw, expected", [
    ('{"psm": 6, "oem": 1}', {"psm": 6, "oem": 1}),
    ("'{\"psm\": 6}'", {"psm": 6}),
    ("{'psm': 6, 'languages': ['eng']}", {"psm": 6, "languages": ["eng"]}),
    ("psm=6;preserve-interword-spaces=false;languages=eng,vie", {
        "psm": 6, "preserve_interword_spaces": False, "languages": ["eng", "vie"],
    }),
    ("", {}),
    ("{}", {}),
])
def test_parse_backend_kwargs(raw, expected):
    assert cli._parse_backend_kwargs(raw) == expected


def test_parse_backend_kwargs_rejects_garbage():
    with pytest.raises(SystemExit):
        cli._parse_backend_kwargs("not parseable")


def test_parser_options():
    args = cli.build_parser().parse_args([
        "-i", "a.pdf", "b.pdf", "-o", "out", "-l", "eng", "vie", "-t", "80",
        "-w", "2", "--timeout", "45", "--ocr-backend", "easyocr",
    ])

    assert [str(p) for p in args.inputs] == ["a.pdf", "b.pdf"]
    assert args.languages == ["eng", "vie"]
    assert args.threshold == 80
    assert args.max_concurrency == 2
    assert args.per_task_timeout == 45.0
    assert args.ocr_backend == "easyocr"


def test_collect_inputs(tmp_path):
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "b.pdf").write_bytes(b"")
    (tmp_path / "a.PNG").write_bytes(b"")
    (tmp_path / "notes.txt").write_text("skip me")
    explicit = tmp_path / "notes.txt"

    found = cli.collect_inputs([tmp_path, explicit, tmp_path / "missing.pdf"])

    assert found == [tmp_path / "a.PNG", tmp_path / "nested" / "b.pdf", explicit]


def test_normalize_output_path(tmp_path):
    assert cli._normalize_output_path(tmp_path) == tmp_path / "paradoc_documents.jsonl"
    assert cli._normalize_output_path(tmp_path / "sub" / "out") == tmp_path / "sub" / "out.jsonl"
    assert (tmp_path / "sub" / "out.jsonl").exists()


def test_run_writes_successful_documents(tmp_path, monkeypatch):
    class FakePipeline:
        def convert(self, path):
            if path.name == "bad.pdf":
                return ConversionResult(success=False, reason="Empty content for bad.pdf: nothing")
            return ConversionResult(success=True, documents=[_document(body=f"text of {path.name}")])

    monkeypatch.setattr(cli.DocumentPipeline, "from_config", classmethod(lambda cls, config: FakePipeline()))
    out = tmp_path / "out.jsonl"

    failures = cli.run(ParadocConfig(), [tmp_path / "good.pdf", tmp_path / "bad.pdf"], out)

    lines = out.read_text(encoding="utf-8").splitlines()
    assert failures == 1
    assert len(lines) == 1
    assert json.loads(lines[0])["pageContent"] == "text of good.pdf"
