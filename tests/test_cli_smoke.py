from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path

import numpy as np
import pytest

SOURCE = """country,sex,value
AU,M,1
AU,F,2
US,M,3
US,F,4
"""


def _ravel(*args: str, cwd: Path) -> subprocess.CompletedProcess:
    env = os.environ.copy()
    proc = subprocess.run(
        ["python", "-m", "ravel", *args],
        cwd=str(cwd),
        env=env,
        capture_output=True,
        text=True,
        check=False,
    )
    if proc.returncode != 0:
        pytest.fail(f"CLI failed: {proc.returncode}\n{proc.stdout}\n{proc.stderr}")
    return proc


def test_cli_inspect_smoke(tmp_path: Path):
    data = tmp_path / "pop.csv"
    data.write_text(SOURCE, encoding="utf-8")

    proc = _ravel("inspect", str(data), cwd=tmp_path)

    spec = json.loads(proc.stdout)
    assert spec["separator"] == ","
    assert spec["n_col_axes"] == 2
    assert spec["dimension_names"][:2] == ["country", "sex"]


def test_cli_convert_and_show(tmp_path: Path):
    data = tmp_path / "pop.csv"
    data.write_text(SOURCE, encoding="utf-8")

    _ravel("convert", str(data), "--out", str(tmp_path / "pop.npy"), cwd=tmp_path)
    np.testing.assert_array_equal(np.load(tmp_path / "pop.npy"), [[1.0, 2.0], [3.0, 4.0]])

    _ravel("convert", str(data), "--out", str(tmp_path / "out" / "pop.csv"), "--comment", "hi", cwd=tmp_path)
    lines = (tmp_path / "out" / "pop.csv").read_text(encoding="utf-8").splitlines()
    assert lines[0] == '"""hi"""'

    proc = _ravel("show", str(data), cwd=tmp_path)
    assert proc.stdout.splitlines()[0] == "# country, sex, value"
    assert "US, F, 4.00" in proc.stdout.splitlines()


def test_cli_report(tmp_path: Path):
    data = tmp_path / "dup.csv"
    data.write_text("key,other,value\nA,x,1\nA,x,2\nB,y,3\n", encoding="utf-8")
    out = tmp_path / "report.txt"

    _ravel("report", str(data), "--out", str(out), cwd=tmp_path)

    assert out.read_text(encoding="utf-8").splitlines() == [
        "error,key,other,value",
        "duplicate key,A,x,1",
        "duplicate key,A,x,2",
        ",B,y,3",
    ]


def test_cli_duplicates_average(tmp_path: Path):
    data = tmp_path / "dup.csv"
    data.write_text("key,value\nA,3\nA,4\nB,1\n", encoding="utf-8")

    proc = _ravel("show", str(data), "--duplicates", "average", cwd=tmp_path)

    assert "A, 3.50" in proc.stdout.splitlines()
