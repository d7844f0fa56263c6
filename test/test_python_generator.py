import importlib.util

import pytest

from vtablegen.generator import GeneratorOptions
from vtablegen.python_generator import Generator, gen_type, literal
from vtablegen.schema import (
    ICE,
    EnumDef,
    FieldDef,
    RecordDef,
    ScalarKind,
    Type,
)


def render(schema, node):
    text, _ = Generator(schema, GeneratorOptions(False, "x", 1)).render(node)
    return text


def by_name(schema, name):
    return next(d for d in schema.enums + schema.records if d.name == name)


def build_module(schema, tmp_path, file_name="schema"):
    """Generate a single python file for schema and import it"""
    (output,) = Generator(schema, GeneratorOptions(True, file_name, 1)).generate()
    path = tmp_path / output.path
    path.write_text(output.content)
    spec = importlib.util.spec_from_file_location(file_name + "_generated", str(path))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_gen_type():
    expected = {
        ScalarKind.BOOL: "bool",
        ScalarKind.BYTE: "int",
        ScalarKind.UBYTE: "int",
        ScalarKind.SHORT: "int",
        ScalarKind.USHORT: "int",
        ScalarKind.INT: "int",
        ScalarKind.UINT: "int",
        ScalarKind.LONG: "int",
        ScalarKind.ULONG: "int",
        ScalarKind.FLOAT: "float",
        ScalarKind.DOUBLE: "float",
    }
    for kind, n in expected.items():
        assert gen_type(Type.basic(kind)) == n
    color = EnumDef("Color", [], ScalarKind.BYTE)
    union = EnumDef("Any", [], ScalarKind.UBYTE, is_union=True)
    assert gen_type(Type.string()) == "str"
    assert gen_type(Type.vector(Type.basic(ScalarKind.DOUBLE))) == "typing_.List[float]"
    assert gen_type(Type.struct(RecordDef("Vec3", [], fixed=True))) == '"Vec3"'
    assert gen_type(Type.table(RecordDef("Monster", []))) == '"Monster"'
    assert gen_type(Type.enum(color)) == "int"
    assert gen_type(Type.union(union)) == "flatbuffers.table.Table"
    with pytest.raises(ICE):
        gen_type(Type("bogus"))  # type: ignore


def test_literals():
    assert literal(FieldDef("b", Type.basic(ScalarKind.BOOL), True)) == "True"
    assert literal(FieldDef("f", Type.basic(ScalarKind.FLOAT), 1.5)) == "1.5"
    assert literal(FieldDef("f", Type.basic(ScalarKind.DOUBLE), float("nan"))) == 'float("nan")'
    assert literal(FieldDef("f", Type.basic(ScalarKind.DOUBLE), float("-inf"))) == 'float("-inf")'
    assert literal(FieldDef("i", Type.basic(ScalarKind.ULONG), 2 ** 64 - 1)) == str(2 ** 64 - 1)


class TestMonsterText:
    def test_header(self, monster_schema):
        text = render(monster_schema, by_name(monster_schema, "Monster"))
        assert text.startswith("class Monster(object):\n")
        g = Generator(monster_schema, GeneratorOptions(False, "x", 1))
        header = g.header([by_name(monster_schema, "Monster")])
        assert "# THIS FILE IS GENERATED DO NOT EDIT\n" in header
        assert "import flatbuffers.table\n" in header
        assert "def _required(" in header
        assert "def _required(" not in g.header([by_name(monster_schema, "Vec3")])

    def test_accessor(self, monster_schema):
        text = render(monster_schema, by_name(monster_schema, "Monster"))
        assert (
            "    @property\n"
            "    def hp(self) -> int:\n"
            '        """\n'
            "        Hit points\n"
            '        """\n'
            "        o = self._tab.Offset(4)\n"
            "        if o == 0:\n"
            "            return 100\n"
            "        return self._tab.Get(flatbuffers.number_types.Int16Flags, o + self._tab.Pos)\n"
        ) in text
        assert "        o = self._tab.Offset(10)\n" in text
        assert '        raise NotImplementedError("string fields cannot be read yet")\n' in text
        assert "mana" not in text

    def test_builder(self, monster_schema):
        text = render(monster_schema, by_name(monster_schema, "Monster"))
        assert "    builder.StartObject(4)\n" in text
        assert "    builder.PrependInt16Slot(0, hp, 100)\n" in text
        assert "    builder.PrependUOffsetTRelativeSlot(1, name, 0)\n" in text
        assert "    builder.PrependInt8Slot(2, color, 2)\n" in text
        assert "    builder.PrependFloat32Slot(3, speed, 1.5)\n" in text
        assert '    _required(builder, o, 1, "Monster.name")\n' in text
        assert (
            "def monster_create(builder: flatbuffers.Builder, speed: float = 1.5, "
            "name: int = 0, hp: int = 100, color: int = 2) -> int:\n"
        ) in text
        assert '    builder.Finish(offset, file_identifier=b"MONS")\n' in text
        assert 'flatbuffers.util.BufferHasIdentifier(buf, offset, b"MONS")' in text

    def test_struct(self, monster_schema):
        text = render(monster_schema, by_name(monster_schema, "Vec3"))
        assert "get_root_as" not in text
        assert (
            "        return self._tab.Get(flatbuffers.number_types.Float32Flags, self._tab.Pos + 4)\n"
        ) in text
        assert (
            "def vec3_create(builder: flatbuffers.Builder, x: float = 0.0, "
            "y: float = 0.0, z: float = 0.0) -> int:\n"
            "    builder.Prep(4, 12)\n"
            "    builder.PrependFloat32(z)\n"
            "    builder.PrependFloat32(y)\n"
            "    builder.PrependFloat32(x)\n"
            "    return builder.Offset()\n"
        ) in text

    def test_enum(self, monster_schema):
        text = render(monster_schema, by_name(monster_schema, "Color"))
        assert text == (
            "class Color(enum.IntEnum):\n"
            '    """\n'
            "    Colors a monster can have\n"
            '    """\n'
            "    Red = 0\n"
            "    Green = 1\n"
            "    Blue = 2\n"
            "\n"
            "\n"
        )


def test_keyword_names_are_escaped(load):
    schema = load("table Thing { class: int; None: bool; }")
    text = render(schema, by_name(schema, "Thing"))
    assert "    def class_(self) -> int:\n" in text
    assert "def thing_add_class(builder: flatbuffers.Builder, class_: int) -> None:\n" in text
    assert "    builder.PrependInt32Slot(0, class_, 0)\n" in text
    assert "    def None_(self) -> bool:\n" in text


def test_per_file_packages(monster_schema):
    outputs = Generator(monster_schema, GeneratorOptions(False, "x", 1)).generate()
    paths = sorted(o.path for o in outputs)
    assert paths == [
        "MyGame/Color.py",
        "MyGame/Monster.py",
        "MyGame/Vec3.py",
        "MyGame/__init__.py",
    ]
    init = next(o for o in outputs if o.path.endswith("__init__.py"))
    assert init.content == ""


class TestRuntime:
    """Build buffers with the generated code and read them back"""

    @pytest.fixture(autouse=True)
    def runtime(self):
        return pytest.importorskip("flatbuffers")

    def test_monster(self, monster_schema, tmp_path, runtime):
        mod = build_module(monster_schema, tmp_path, "monster")
        b = runtime.Builder(0)
        name = b.CreateString("Orc")
        m = mod.monster_create(b, name=name, hp=300, color=mod.Color.Red)
        mod.monster_finish_buffer(b, m)
        buf = b.Output()
        assert mod.monster_buffer_has_identifier(buf)
        monster = mod.Monster.get_root_as(buf)
        assert monster.hp == 300
        assert monster.color == mod.Color.Red
        assert monster.speed == 1.5
        with pytest.raises(NotImplementedError):
            monster.name

    def test_defaults_are_not_written(self, monster_schema, tmp_path, runtime):
        mod = build_module(monster_schema, tmp_path, "monster")
        b = runtime.Builder(0)
        name = b.CreateString("Orc")
        mod.monster_start(b)
        mod.monster_add_name(b, name)
        mod.monster_add_hp(b, 100)
        m = mod.monster_end(b)
        mod.monster_finish_buffer(b, m)
        monster = mod.Monster.get_root_as(b.Output())
        assert monster._tab.Offset(4) == 0
        assert monster.hp == 100
        assert monster.color == mod.Color.Blue

    def test_missing_required_field(self, monster_schema, tmp_path, runtime):
        mod = build_module(monster_schema, tmp_path, "monster")
        b = runtime.Builder(0)
        mod.monster_start(b)
        mod.monster_add_hp(b, 5)
        with pytest.raises(ValueError, match="Monster.name"):
            mod.monster_end(b)

    def test_struct_field(self, load, tmp_path, runtime):
        schema = load(
            """
struct Vec3 { x: float; y: float; z: float; }
table T { pos: Vec3; hp: short = 100; }
"""
        )
        mod = build_module(schema, tmp_path)
        assert not hasattr(mod, "t_create")
        b = runtime.Builder(0)
        mod.t_start(b)
        mod.t_add_hp(b, 7)
        mod.t_add_pos(b, mod.vec3_create(b, 1.0, 2.0, 3.0))
        b.Finish(mod.t_end(b))
        buf = b.Output()
        t = mod.T.get_root_as(buf)
        assert t.hp == 7
        v = mod.Vec3()
        v.init(buf, t._tab.Pos + t._tab.Offset(4))
        assert (v.x, v.y, v.z) == (1.0, 2.0, 3.0)

    def test_padded_struct(self, load, tmp_path, runtime):
        schema = load(
            """
struct S { a: byte; b: int; c: short; }
table T { s: S; }
"""
        )
        mod = build_module(schema, tmp_path)
        b = runtime.Builder(0)
        mod.t_start(b)
        mod.t_add_s(b, mod.s_create(b, -1, 123456, 42))
        b.Finish(mod.t_end(b))
        buf = b.Output()
        t = mod.T.get_root_as(buf)
        s = mod.S()
        s.init(buf, t._tab.Pos + t._tab.Offset(4))
        assert (s.a, s.b, s.c) == (-1, 123456, 42)

    def test_lookup_by_key(self, load, tmp_path, runtime):
        schema = load("table Item { name: string; id: uint (key); }")
        mod = build_module(schema, tmp_path)
        b = runtime.Builder(0)
        offsets = [mod.item_create(b, id=i) for i in (1, 5, 9)]
        b.Finish(offsets[-1])
        buf = b.Output()
        positions = [len(buf) - off for off in offsets]
        assert mod.item_lookup_by_key(buf, positions, 5).id == 5
        assert mod.item_lookup_by_key(buf, positions, 9).id == 9
        assert mod.item_lookup_by_key(buf, positions, 4) is None
        assert mod.item_lookup_by_key(buf, [], 1) is None

    def test_lookup_with_comparison(self, load, tmp_path, runtime):
        schema = load("table Item { name: string (key); rank: int; }")
        mod = build_module(schema, tmp_path)
        b = runtime.Builder(0)
        offsets = []
        for rank in (2, 4, 8):
            name = b.CreateString("item%d" % rank)
            offsets.append(mod.item_create(b, name=name, rank=rank))
        b.Finish(offsets[-1])
        buf = b.Output()
        positions = [len(buf) - off for off in offsets]
        found = mod.item_lookup_by_key(buf, positions, lambda t: t.rank - 4)
        assert found.rank == 4
