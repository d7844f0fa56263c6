# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Run the vtablegen executable the way a build would
"""
import os
import subprocess
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def run_vtablegen(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "-m", "vtablegen"] + list(args),
        cwd=ROOT,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        universal_newlines=True,
    )


def test_plan(monster_fbs):
    res = run_vtablegen("plan", str(monster_fbs))
    assert res.returncode == 0, res.stderr
    assert "table Monster (sortbysize)" in res.stdout


def test_generate_twice(monster_fbs, tmp_path):
    out = tmp_path / "out"
    for _ in range(2):
        res = run_vtablegen("swift", str(monster_fbs), str(out), "--one-file")
        assert res.returncode == 0, res.stderr
        assert "Warning: Monster.name" in res.stderr
    assert os.listdir(str(out)) == ["monster_generated.swift"]


def test_invalid_schema(tmp_path):
    path = tmp_path / "bad.fbs"
    path.write_text("struct S { s: string; }\n")
    res = run_vtablegen("py", str(path), str(tmp_path / "out"))
    assert res.returncode == 1
    assert "Error in struct S on line 1" in res.stderr


def test_unknown_command():
    assert run_vtablegen("cpp").returncode != 0
