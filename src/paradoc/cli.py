# src/paradoc/cli.py
from __future__ import annotations

import argparse
import ast
import json
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

from tqdm import tqdm

from .config import ParadocConfig
from .exceptions import BackendLoadError
from .logger import setup_logging
from .pipeline import DocumentPipeline

__all__ = ["collect_inputs", "run", "main"]

logger = logging.getLogger("paradoc")

SUPPORTED_SUFFIXES = (".pdf", ".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


def _parse_backend_kwargs(val) -> dict:
    """
    Accept several syntaxes for --ocr-backend-kwargs:
      1) JSON (double quotes)                      {"oem":3,"psm":6}
      2) Python-literal dict with single quotes    {'oem': 3, 'psm': 6}
      3) key=value pairs separated by ;            oem=3;psm=6;languages=eng,vie
    """
    if isinstance(val, dict):
        return dict(val)
    if not isinstance(val, str) or not val.strip():
        return {}

    s = val.strip()
    # Strip outer quotes like '"{...}"' or "'{...}'"
    if len(s) >= 2 and s[0] in ("'", '"') and s[-1] == s[0]:
        s = s[1:-1].strip()

    try:
        parsed = json.loads(s)
        if isinstance(parsed, dict):
            return parsed
    except ValueError:
        pass

    try:
        lit = ast.literal_eval(s)
        if isinstance(lit, dict):
            return lit
    except (ValueError, SyntaxError):
        pass

    out: dict = {}
    for part in re.split(r";\s*", s):
        if "=" not in part:
            continue
        k, v = part.split("=", 1)
        k = k.strip().strip('"\'').replace("-", "_").lower()
        v = v.strip().strip('"\'')

        # List support like eng,vie
        if "," in v:
            out[k] = [x.strip() for x in v.split(",") if x.strip()]
            continue
        low = v.lower()
        if low in ("true", "false"):
            out[k] = (low == "true")
        elif re.fullmatch(r"-?\d+", v):
            out[k] = int(v)
        elif re.fullmatch(r"-?\d+\.\d*", v):
            out[k] = float(v)
        else:
            out[k] = v

    if out:
        return out
    raise SystemExit(f"Invalid --ocr-backend-kwargs. Could not parse: {val!r}")


def _normalize_output_path(arg: Path) -> Path:
    """
    - If arg is an existing directory: write paradoc_documents.jsonl inside it.
    - If arg has no suffix: add .jsonl
    Ensures parent dirs exist and the file is writable.
    """
    out = Path(arg)
    if out.exists() and out.is_dir():
        out = out / "paradoc_documents.jsonl"
    elif out.suffix == "":
        out = out.with_suffix(".jsonl")

    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(out, "a", encoding="utf-8"):
            pass
    except OSError as e:
        raise SystemExit(f"--output-path is not writable: {out} ({e})")
    return out


def collect_inputs(paths: List[Path]) -> List[Path]:
    """Expand directories recursively and keep supported file types only."""
    files: List[Path] = []
    for p in paths:
        if p.is_dir():
            files.extend(sorted(f for f in p.rglob("*") if f.is_file() and f.suffix.lower() in SUPPORTED_SUFFIXES))
        elif p.is_file():
            files.append(p)
        else:
            logger.warning("Input does not exist, %s", p)
    return files


def run(config: ParadocConfig, inputs: List[Path], output_path: Path) -> int:
    """Convert every input, append documents to output_path. Returns the number of failures."""
    pipeline = DocumentPipeline.from_config(config)
    failures = 0
    with open(output_path, "a", encoding="utf-8") as outfile:
        for path in tqdm(inputs, desc="Converting documents", disable=not config.show_progress):
            result = pipeline.convert(path)
            if not result.success:
                failures += 1
                continue
            for doc in result.documents:
                outfile.write(json.dumps(doc.to_dict(), ensure_ascii=False) + "\n")
            outfile.flush()
    logger.info("Converted %d of %d document(s)", len(inputs) - failures, len(inputs))
    return failures


# -------------------------------
# CLI parsing
# -------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="paradoc",
        description="Convert documents to text, OCR'ing only the pages whose text layer is unusable",
    )
    p.add_argument("-i", "--input", dest="inputs", type=Path, nargs="+", required=True,
                   help="Files or directories to convert")
    p.add_argument("-o", "--output-path", type=Path, required=True,
                   help="Output JSONL file, or a directory to write paradoc_documents.jsonl into")

    p.add_argument("-l", "--languages", nargs="+", help="OCR language codes, e.g. eng vie")
    p.add_argument("-t", "--threshold", type=int,
                   help="Minimum characters for a page's text layer to count as usable")
    p.add_argument("-w", "--max-concurrency", type=int, help="OCR calls allowed in flight at once")
    p.add_argument("--timeout", dest="per_task_timeout", type=float, help="Per-page OCR timeout in seconds")
    p.add_argument("-d", "--dpi", type=int, help="DPI to use for rendering PDF pages")
    p.add_argument("--ocr-backend", default="tesseract",
                   help="Backend alias (tesseract, easyocr) or dotted path to an OCR backend class")
    p.add_argument("--ocr-backend-kwargs", default="{}",
                   help='Backend init kwargs as JSON or key=value pairs, e.g. \'{"psm": 6}\' or psm=6;oem=1')
    p.add_argument("--progress", dest="show_progress", action="store_true", help="Show progress bars")
    p.add_argument("--log-file", type=Path, help="Also write logs to this file")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    listener = setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        file_path=args.log_file,
    )
    listener.start()
    try:
        cfg_dict = {
            "threshold": args.threshold,
            "languages": args.languages,
            "max_concurrency": args.max_concurrency,
            "per_task_timeout": args.per_task_timeout,
            "dpi": args.dpi,
            "ocr_backend": args.ocr_backend,
            "ocr_backend_kwargs": _parse_backend_kwargs(args.ocr_backend_kwargs),
            "show_progress": args.show_progress,
        }
        try:
            config = ParadocConfig.from_dict(cfg_dict)
        except ValueError as e:
            raise SystemExit(f"Invalid option, {e}")

        output_path = _normalize_output_path(args.output_path)
        inputs = collect_inputs(args.inputs)
        if not inputs:
            logger.error("No input files found")
            return 2

        try:
            failures = run(config, inputs, output_path)
        except BackendLoadError as e:
            raise SystemExit(str(e))
        return 1 if failures else 0
    finally:
        listener.stop()


if __name__ == "__main__":
    sys.exit(main())
