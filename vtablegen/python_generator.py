# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Generate python readers and builders for the flatbuffers runtime
"""
import math
import os
import typing as ty

from . import generator
from .emission import (
    AddKind,
    DeclareAccessor,
    DeclareAdd,
    DeclareCreate,
    DeclareEnd,
    DeclareFinish,
    DeclareLookup,
    DeclareStart,
    DeclareStructAccessor,
    DeclareStructCreate,
    Definition,
    StructPad,
    StructPrep,
    StructPut,
    required_checks,
)
from .generator import BANNER, Output, Printer, add_arguments, run_generator
from .keywords import escape
from .plan import plan
from .schema import (
    ICE,
    FLOAT_KINDS,
    EnumDef,
    FieldDef,
    RecordDef,
    ScalarKind,
    Type,
    TypeKind,
    describe,
)
from .util import cescape, snake

TypeInfo = ty.NamedTuple("TypeInfo", [("n", str), ("p", str)])

typeMap: ty.Dict[ScalarKind, TypeInfo] = {
    ScalarKind.BOOL: TypeInfo("Bool", "bool"),
    ScalarKind.BYTE: TypeInfo("Int8", "int"),
    ScalarKind.UBYTE: TypeInfo("Uint8", "int"),
    ScalarKind.SHORT: TypeInfo("Int16", "int"),
    ScalarKind.USHORT: TypeInfo("Uint16", "int"),
    ScalarKind.INT: TypeInfo("Int32", "int"),
    ScalarKind.UINT: TypeInfo("Uint32", "int"),
    ScalarKind.LONG: TypeInfo("Int64", "int"),
    ScalarKind.ULONG: TypeInfo("Uint64", "int"),
    ScalarKind.FLOAT: TypeInfo("Float32", "float"),
    ScalarKind.DOUBLE: TypeInfo("Float64", "float"),
}


def name(n: str) -> str:
    return escape("py", n)


def gen_type(t: Type) -> str:
    if t.kind == TypeKind.SCALAR:
        assert t.scalar is not None
        return typeMap[t.scalar].p
    elif t.kind == TypeKind.STRING:
        return "str"
    elif t.kind == TypeKind.VECTOR:
        assert t.element is not None
        return "typing_.List[%s]" % gen_type(t.element)
    elif t.kind in (TypeKind.STRUCT, TypeKind.TABLE):
        assert t.definition is not None
        return '"%s"' % t.definition.name
    elif t.kind == TypeKind.ENUM:
        return "int"
    elif t.kind == TypeKind.UNION:
        return "flatbuffers.table.Table"
    else:
        raise ICE()


def literal(f: FieldDef) -> str:
    """The default value of a scalar field as a python expression"""
    t = f.type
    v = f.default
    assert t.scalar is not None
    if t.scalar == ScalarKind.BOOL:
        return "True" if v else "False"
    elif t.scalar in FLOAT_KINDS:
        assert v is not None
        fv = float(v)
        if math.isnan(fv) or math.isinf(fv):
            return 'float("%s")' % fv
        return repr(fv)
    else:
        return str(int(v or 0))


def flags(f: FieldDef) -> str:
    assert f.type.scalar is not None
    return "flatbuffers.number_types.%sFlags" % typeMap[f.type.scalar].n


def needs_required(units: ty.List[ty.Union[EnumDef, RecordDef]]) -> bool:
    return any(
        required_checks(plan(u))
        for u in units
        if isinstance(u, RecordDef) and not u.fixed
    )


class Generator(generator.Generator):
    extension = "py"

    def output_doc(
        self,
        o: Printer,
        doc: ty.Optional[ty.List[str]],
        indent: str = "",
    ) -> None:
        if not doc:
            return
        o('%s"""' % indent)
        for line in doc:
            o(("%s%s" % (indent, line)).rstrip())
        o('%s"""' % indent)

    def begin_file(self, o: Printer, units: ty.List[ty.Union[EnumDef, RecordDef]]) -> None:
        o(
            "# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-"
        )
        o("# %s" % BANNER)
        o("import enum")
        o("import typing as typing_")
        o()
        o("import flatbuffers")
        o("import flatbuffers.encode")
        o("import flatbuffers.number_types")
        o("import flatbuffers.packer")
        o("import flatbuffers.table")
        o("import flatbuffers.util")
        o()
        o()
        if needs_required(units):
            o(
                "def _required(builder: flatbuffers.Builder, table: int, slot: int, name: str) -> None:"
            )
            o("    buf = builder.Bytes")
            o("    pos = len(buf) - table")
            o("    vtable = pos - flatbuffers.encode.Get(flatbuffers.packer.soffset, buf, pos)")
            o("    field = 4 + 2 * slot")
            o(
                "    if field >= flatbuffers.encode.Get(flatbuffers.packer.voffset, buf, vtable) or ("
            )
            o(
                "        flatbuffers.encode.Get(flatbuffers.packer.voffset, buf, vtable + field) == 0"
            )
            o("    ):")
            o('        raise ValueError("Missing required field %s" % name)')
            o()
            o()

    def generate_enum(self, o: Printer, node: EnumDef) -> None:
        o("class %s(enum.IntEnum):" % name(node.name))
        self.output_doc(o, node.doc, "    ")
        for ev in node.values:
            o("    %s = %d" % (name(ev.name), ev.value))
        if not node.values:
            o("    pass")
        o()
        o()

    def generate_table_accessor(self, o: Printer, s: DeclareAccessor) -> None:
        f = s.field
        o("    @property")
        o("    def %s(self) -> %s:" % (name(f.name), gen_type(f.type)))
        self.output_doc(o, f.doc, "        ")
        if not s.supported:
            self.generate_unavailable(o, f)
            return
        o("        o = self._tab.Offset(%d)" % (4 + 2 * s.slot))
        o("        if o == 0:")
        o("            return %s" % literal(f))
        o("        return self._tab.Get(%s, o + self._tab.Pos)" % flags(f))
        o()

    def generate_struct_accessor(self, o: Printer, s: DeclareStructAccessor) -> None:
        f = s.field
        o("    @property")
        o("    def %s(self) -> %s:" % (name(f.name), gen_type(f.type)))
        self.output_doc(o, f.doc, "        ")
        if not s.supported:
            self.generate_unavailable(o, f)
            return
        o("        return self._tab.Get(%s, self._tab.Pos + %d)" % (flags(f), s.offset))
        o()

    def generate_unavailable(self, o: Printer, f: FieldDef) -> None:
        o(
            '        raise NotImplementedError("%s fields cannot be read yet")'
            % describe(f.type)
        )
        o()

    def prefix(self, record: RecordDef) -> str:
        return snake(record.name)

    def add_name(self, record: RecordDef, f: FieldDef) -> str:
        return "%s_add_%s" % (self.prefix(record), snake(f.name))

    def add_param(self, s: DeclareAdd) -> str:
        return gen_type(s.field.type) if s.kind == AddKind.SCALAR else "int"

    def generate_add(self, o: Printer, record: RecordDef, s: DeclareAdd) -> None:
        f = s.field
        p = name(snake(f.name))
        o(
            "def %s(builder: flatbuffers.Builder, %s: %s) -> None:"
            % (self.add_name(record, f), p, self.add_param(s))
        )
        if s.kind == AddKind.SCALAR:
            assert f.type.scalar is not None
            o(
                "    builder.Prepend%sSlot(%d, %s, %s)"
                % (typeMap[f.type.scalar].n, s.slot, p, literal(f))
            )
        elif s.kind == AddKind.OFFSET:
            o("    builder.PrependUOffsetTRelativeSlot(%d, %s, 0)" % (s.slot, p))
        elif s.kind == AddKind.STRUCT:
            o("    builder.PrependStructSlot(%d, %s, 0)" % (s.slot, p))
        else:
            raise ICE()
        o()
        o()

    def generate_create(self, o: Printer, record: RecordDef, s: DeclareCreate) -> None:
        px = self.prefix(record)
        params = ["builder: flatbuffers.Builder"]
        for a in s.adds:
            d = literal(a.field) if a.kind == AddKind.SCALAR else "0"
            params.append("%s: %s = %s" % (name(snake(a.field.name)), self.add_param(a), d))
        o("def %s_create(%s) -> int:" % (px, ", ".join(params)))
        o("    %s_start(builder)" % px)
        for a in s.adds:
            o("    %s(builder, %s)" % (self.add_name(record, a.field), name(snake(a.field.name))))
        o("    return %s_end(builder)" % px)
        o()
        o()

    def generate_lookup(self, o: Printer, record: RecordDef, s: DeclareLookup) -> None:
        k = s.key
        rn = name(record.name)
        if s.supported:
            arg = "key: %s" % gen_type(k.type)
        else:
            arg = 'compare: typing_.Callable[["%s"], int]' % record.name
        o(
            'def %s_lookup_by_key(buf: bytes, positions: typing_.List[int], %s) -> typing_.Optional["%s"]:'
            % (self.prefix(record), arg, record.name)
        )
        o('    """Binary search the tables at positions, which are sorted by %s"""' % k.name)
        o("    lo = 0")
        o("    hi = len(positions) - 1")
        o("    while lo <= hi:")
        o("        mid = (lo + hi) // 2")
        o("        table = %s()" % rn)
        o("        table.init(buf, positions[mid])")
        if s.supported:
            o("        value = table.%s" % name(k.name))
            o("        if value == key:")
            o("            return table")
            o("        if value < key:")
        else:
            o("        c = compare(table)")
            o("        if c == 0:")
            o("            return table")
            o("        if c < 0:")
        o("            lo = mid + 1")
        o("        else:")
        o("            hi = mid - 1")
        o("    return None")
        o()
        o()

    def generate_struct_create(
        self, o: Printer, record: RecordDef, s: DeclareStructCreate
    ) -> None:
        params = ["builder: flatbuffers.Builder"]
        for n, f in s.args:
            params.append("%s: %s = %s" % (name(snake(n)), gen_type(f.type), literal(f)))
        o("def %s_create(%s) -> int:" % (self.prefix(record), ", ".join(params)))
        for step in s.steps:
            if isinstance(step, StructPrep):
                o("    builder.Prep(%d, %d)" % (step.minalign, step.bytesize))
            elif isinstance(step, StructPad):
                o("    builder.Pad(%d)" % step.size)
            elif isinstance(step, StructPut):
                assert step.field.type.scalar is not None
                o(
                    "    builder.Prepend%s(%s)"
                    % (typeMap[step.field.type.scalar].n, name(snake(step.name)))
                )
            else:
                raise ICE()
        o("    return builder.Offset()")
        o()
        o()

    def generate_record(self, o: Printer, definition: Definition) -> None:
        record = definition.record
        rn = name(record.name)
        px = self.prefix(record)
        o("class %s(object):" % rn)
        self.output_doc(o, record.doc, "    ")
        o('    __slots__ = ["_tab"]')
        o()
        if not record.fixed:
            o("    @classmethod")
            o('    def get_root_as(cls, buf: bytes, offset: int = 0) -> "%s":' % record.name)
            o("        n = flatbuffers.encode.Get(flatbuffers.packer.uoffset, buf, offset)")
            o("        x = cls()")
            o("        x.init(buf, n + offset)")
            o("        return x")
            o()
        o("    def init(self, buf: bytes, pos: int) -> None:")
        o("        self._tab = flatbuffers.table.Table(buf, pos)")
        o()
        for s in definition.statements:
            if isinstance(s, DeclareAccessor):
                self.generate_table_accessor(o, s)
            elif isinstance(s, DeclareStructAccessor):
                self.generate_struct_accessor(o, s)
        o()
        for s in definition.statements:
            if isinstance(s, (DeclareAccessor, DeclareStructAccessor)):
                pass
            elif isinstance(s, DeclareStart):
                o("def %s_start(builder: flatbuffers.Builder) -> None:" % px)
                o("    builder.StartObject(%d)" % s.field_count)
                o()
                o()
            elif isinstance(s, DeclareAdd):
                self.generate_add(o, record, s)
            elif isinstance(s, DeclareEnd):
                o("def %s_end(builder: flatbuffers.Builder) -> int:" % px)
                o("    o = builder.EndObject()")
                for r in s.required:
                    o('    _required(builder, o, %d, "%s.%s")' % (r.slot, record.name, r.field.name))
                o("    return o")
                o()
                o()
            elif isinstance(s, DeclareCreate):
                self.generate_create(o, record, s)
            elif isinstance(s, DeclareFinish):
                ident = (
                    ', file_identifier=b"%s"' % cescape(s.file_identifier.encode("utf-8"))
                    if s.file_identifier
                    else ""
                )
                o(
                    "def %s_finish_buffer(builder: flatbuffers.Builder, offset: int) -> None:"
                    % px
                )
                o("    builder.Finish(offset%s)" % ident)
                o()
                o()
                if s.file_identifier:
                    o("def %s_buffer_has_identifier(buf: bytes, offset: int = 0) -> bool:" % px)
                    o(
                        '    return flatbuffers.util.BufferHasIdentifier(buf, offset, b"%s")'
                        % cescape(s.file_identifier.encode("utf-8"))
                    )
                    o()
                    o()
            elif isinstance(s, DeclareLookup):
                self.generate_lookup(o, record, s)
            elif isinstance(s, DeclareStructCreate):
                self.generate_struct_create(o, record, s)
            else:
                raise ICE()

    def extra_outputs(self, outputs: ty.List[Output]) -> ty.List[Output]:
        if self.options.one_file:
            return []
        packages: ty.Set[str] = set()
        for output in outputs:
            d = os.path.dirname(output.path)
            while d:
                packages.add(d)
                d = os.path.dirname(d)
        return [Output(os.path.join(d, "__init__.py"), "") for d in sorted(packages)]


def run(args) -> int:
    return run_generator(Generator, args)


def setup(subparsers) -> None:
    cmd = subparsers.add_parser("py", help="Generate python code")
    add_arguments(cmd)
    cmd.set_defaults(func=run)
