import os

import pytest

from vtablegen import python_generator, swift_generator
from vtablegen.__main__ import parser
from vtablegen.generator import GeneratorOptions, Output, load_schema, save


def options(one_file=False, jobs=1):
    return GeneratorOptions(one_file, "monster", jobs)


def test_definitions_are_enums_then_records(monster_schema):
    g = swift_generator.Generator(monster_schema, options())
    assert [d.name for d in g.definitions()] == ["Color", "Vec3", "Monster"]


def test_per_file_paths_follow_namespaces(monster_schema):
    outputs = swift_generator.Generator(monster_schema, options()).generate()
    assert [o.path for o in outputs] == [
        os.path.join("MyGame", "Color.swift"),
        os.path.join("MyGame", "Vec3.swift"),
        os.path.join("MyGame", "Monster.swift"),
    ]
    for o in outputs:
        assert o.content.startswith("// THIS FILE IS GENERATED DO NOT EDIT\n")


def test_one_file(monster_schema):
    (output,) = python_generator.Generator(monster_schema, options(one_file=True)).generate()
    assert output.path == "monster_generated.py"
    content = output.content
    assert content.count("# THIS FILE IS GENERATED DO NOT EDIT") == 1
    assert content.index("class Color(") < content.index("class Vec3(")
    assert content.index("class Vec3(") < content.index("class Monster(")


@pytest.mark.parametrize("cls", [python_generator.Generator, swift_generator.Generator])
def test_jobs_do_not_change_output(monster_schema, cls):
    serial = cls(monster_schema, options(jobs=1)).generate()
    parallel = cls(monster_schema, options(jobs=4)).generate()
    assert serial == parallel
    assert cls(monster_schema, options(one_file=True)).generate() == cls(
        monster_schema, options(one_file=True, jobs=3)
    ).generate()


def test_generation_is_deterministic(monster_schema):
    first = swift_generator.Generator(monster_schema, options()).generate()
    second = swift_generator.Generator(monster_schema, options()).generate()
    assert first == second


def test_warnings_are_collected(monster_schema):
    g = python_generator.Generator(monster_schema, options(jobs=2))
    g.generate()
    assert g.warnings == ["Monster.name: no accessor is generated for string fields"]


def test_save_only_writes_changes(tmp_path):
    outputs = [Output(os.path.join("a", "b", "X.swift"), "x"), Output("Y.swift", "y")]
    assert save(outputs, str(tmp_path)) == [
        str(tmp_path / "a" / "b" / "X.swift"),
        str(tmp_path / "Y.swift"),
    ]
    assert (tmp_path / "a" / "b" / "X.swift").read_text() == "x"
    assert save(outputs, str(tmp_path)) == []
    outputs[1] = Output("Y.swift", "changed")
    assert save(outputs, str(tmp_path)) == [str(tmp_path / "Y.swift")]
    assert (tmp_path / "Y.swift").read_text() == "changed"


def test_load_schema(monster_fbs):
    schema = load_schema(str(monster_fbs))
    assert schema is not None
    assert schema.root is not None and schema.root.name == "Monster"


class TestCommandLine:
    def run(self, *argv):
        args = parser.parse_args(list(argv))
        return args.func(args)

    def test_swift(self, monster_fbs, tmp_path, capsys):
        out = tmp_path / "out"
        assert self.run("swift", str(monster_fbs), str(out)) == 0
        assert (out / "MyGame" / "Monster.swift").exists()
        assert (out / "MyGame" / "Color.swift").exists()
        err = capsys.readouterr().err
        assert "Warning: Monster.name: no accessor is generated for string fields" in err

    def test_py_one_file(self, monster_fbs, tmp_path):
        out = tmp_path / "out"
        assert self.run("py", str(monster_fbs), str(out), "--one-file", "--jobs", "2") == 0
        assert os.listdir(str(out)) == ["monster_generated.py"]

    def test_py_file_name(self, monster_fbs, tmp_path):
        out = tmp_path / "out"
        args = ("py", str(monster_fbs), str(out), "--one-file", "--file-name", "game")
        assert self.run(*args) == 0
        assert (out / "game_generated.py").exists()

    def test_py_packages(self, monster_fbs, tmp_path):
        out = tmp_path / "out"
        assert self.run("py", str(monster_fbs), str(out)) == 0
        assert (out / "MyGame" / "__init__.py").read_text() == ""
        assert (out / "MyGame" / "Monster.py").exists()

    def test_invalid_schema(self, tmp_path, capsys):
        path = tmp_path / "bad.fbs"
        path.write_text("table T { a: Missing; }\n")
        assert self.run("swift", str(path), str(tmp_path / "out")) == 1
        err = capsys.readouterr().err
        assert "Unknown type" in err
        assert "Schema is invalid" in err
        assert not (tmp_path / "out").exists()

    def test_missing_schema(self, tmp_path, capsys):
        assert self.run("py", str(tmp_path / "nope.fbs"), str(tmp_path)) == 1
        assert capsys.readouterr().err.startswith("Error: ")

    def test_plan_marks_the_key(self, tmp_path, capsys):
        path = tmp_path / "k.fbs"
        path.write_text("table T { id: int (key); }\n")
        assert self.run("plan", str(path)) == 0
        assert "  slot 0   write 0   id: int (key)" in capsys.readouterr().out

    def test_plan(self, monster_fbs, capsys):
        assert self.run("plan", str(monster_fbs)) == 0
        out = capsys.readouterr().out.split("\n")
        assert out[0] == "struct Vec3 (size 12, align 4)"
        assert out[1] == "  offset 0   pad 0  x: float"
        assert out[4] == "table Monster (sortbysize)"
        assert out[5] == "  slot 0   write 2   hp: short"
        assert out[6] == "  slot 1   write 1   name: string (required)"
        assert out[8] == "  slot 3   write 0   speed: float"

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            parser.parse_args([])
