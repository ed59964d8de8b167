from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from .core.config import LoadConfig
from .core.data_spec import DataSpec
from .core.export import export_as_csv
from .core.formatting import format_eng
from .core.inference import guess_from_stream
from .core.loader import load_tensor_from_csv, report_from_csv
from .core.tensor import TensorValue


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SystemExit(f"Input file not found: {path}") from exc


def _guess(text: str, args: argparse.Namespace) -> DataSpec:
    spec = DataSpec()
    if getattr(args, "duplicates", None):
        spec.duplicate_key_action = args.duplicates
    if getattr(args, "missing", None) is not None:
        spec.missing_value = float(args.missing)
    return guess_from_stream(text, spec, max_rows=args.max_rows)


def _load(path: Path, args: argparse.Namespace) -> TensorValue:
    text = _read_source(path)
    spec = _guess(text, args)
    config = LoadConfig(max_rows_to_analyse=args.max_rows, max_bytes=getattr(args, "max_bytes", None))
    return load_tensor_from_csv(text, spec, config=config)


def _inspect(args: argparse.Namespace) -> None:
    spec = _guess(_read_source(args.file), args)
    print(json.dumps(spec.to_dict(), indent=2, ensure_ascii=False))


def _report(args: argparse.Namespace) -> None:
    text = _read_source(args.file)
    spec = _guess(text, args)
    if args.out is None:
        report_from_csv(text, sys.stdout, spec)
        return
    args.out.parent.mkdir(parents=True, exist_ok=True)
    with args.out.open("w", encoding="utf-8", newline="") as handle:
        report_from_csv(text, handle, spec)


def _convert(args: argparse.Namespace) -> None:
    tensor = _load(args.file, args)
    out: Path = args.out
    if out.suffix.lower() == ".npy":
        out.parent.mkdir(parents=True, exist_ok=True)
        np.save(out, tensor.as_array())
    else:
        export_as_csv(tensor, out, args.comment)


def _show(args: argparse.Namespace) -> None:
    tensor = _load(args.file, args)
    names = [xv.name for xv in tensor.hypercube.xvectors]
    print("# " + ", ".join(names + ["value"]))
    for key, value in tensor.items():
        if math.isfinite(value):
            print(", ".join(list(key) + [format_eng(value, args.digits)]))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Ravel command line utilities")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log inference decisions")
    parser.add_argument(
        "--max-rows",
        type=int,
        default=100,
        help="Rows sampled when inferring the layout (default: 100)",
    )
    subparsers = parser.add_subparsers(dest="cmd")

    inspect_parser = subparsers.add_parser("inspect", help="Print the inferred layout as JSON")
    inspect_parser.add_argument("file", type=Path, help="Delimited text file")

    report_parser = subparsers.add_parser("report", help="Annotate rows the loader would reject")
    report_parser.add_argument("file", type=Path, help="Delimited text file")
    report_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Optional output path. If omitted, writes to stdout",
    )

    convert_parser = subparsers.add_parser("convert", help="Load a file and write it back out")
    convert_parser.add_argument("file", type=Path, help="Delimited text file")
    convert_parser.add_argument("--out", type=Path, required=True, help="Output path (.csv/.npy)")
    convert_parser.add_argument("--comment", default="", help="Comment line for .csv output")

    show_parser = subparsers.add_parser("show", help="Print every cell in engineering notation")
    show_parser.add_argument("file", type=Path, help="Delimited text file")
    show_parser.add_argument("--digits", type=int, default=3, help="Significant digits (default: 3)")

    for sub in (convert_parser, show_parser):
        sub.add_argument(
            "--duplicates",
            default=None,
            choices=["throw", "sum", "product", "min", "max", "average", "av"],
            help="How to fold repeated keys (default: throw)",
        )
        sub.add_argument("--missing", type=float, default=None, help="Value stored for empty cells")
        sub.add_argument("--max-bytes", type=int, default=None, help="Refuse larger tensors")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "inspect": _inspect,
        "report": _report,
        "convert": _convert,
        "show": _show,
    }
    handler = handlers.get(args.cmd)
    if handler is None:
        parser.print_help()
        return
    handler(args)


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
