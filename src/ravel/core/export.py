from __future__ import annotations

import json
import math
from pathlib import Path
from typing import IO, Union

from .tensor import TensorValue

Target = Union[str, Path, IO[str]]


def _quoted(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def metadata_line(tensor: TensorValue) -> str:
    axes = ",".join(
        json.dumps(nd.to_dict(), separators=(",", ":"), ensure_ascii=False)
        for nd in tensor.hypercube.named_dimensions()
    )
    return _quoted(f"RavelHypercube=[{axes}]")


def write_csv(tensor: TensorValue, out: IO[str], comment: str = "") -> None:
    if comment:
        out.write(f'"""{comment}"""\n')
    out.write(metadata_line(tensor) + "\n")
    out.write("".join(_quoted(xv.name) + "," for xv in tensor.hypercube.xvectors) + "value\n")
    for key, value in tensor.items():
        if not math.isfinite(value):
            continue
        out.write("".join(_quoted(label) + "," for label in key) + repr(value) + "\n")


def export_as_csv(tensor: TensorValue, target: Target, comment: str = "") -> None:
    """Write ``tensor`` in the self-describing CSV layout read back by the metadata fast path."""
    if isinstance(target, (str, Path)):
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as handle:
            write_csv(tensor, handle, comment)
        return
    write_csv(tensor, target, comment)
