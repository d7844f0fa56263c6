# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Generate swift readers and builders
"""
import math
import typing as ty

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
)
from . import generator
from .generator import BANNER, Printer, add_arguments, run_generator
from .keywords import escape
from .schema import (
    ICE,
    FLOAT_KINDS,
    EnumDef,
    FieldDef,
    RecordDef,
    ScalarKind,
    SchemaError,
    Type,
    TypeKind,
    describe,
)
from .util import cescape, lcamel, ucamel

TypeInfo = ty.NamedTuple("TypeInfo", [("n", str), ("w", int)])

typeMap: ty.Dict[ScalarKind, TypeInfo] = {
    ScalarKind.BOOL: TypeInfo("Bool", 1),
    ScalarKind.BYTE: TypeInfo("Int8", 1),
    ScalarKind.UBYTE: TypeInfo("UInt8", 1),
    ScalarKind.SHORT: TypeInfo("Int16", 2),
    ScalarKind.USHORT: TypeInfo("UInt16", 2),
    ScalarKind.INT: TypeInfo("Int32", 4),
    ScalarKind.UINT: TypeInfo("UInt32", 4),
    ScalarKind.LONG: TypeInfo("Int64", 8),
    ScalarKind.ULONG: TypeInfo("UInt64", 8),
    ScalarKind.FLOAT: TypeInfo("Float", 4),
    ScalarKind.DOUBLE: TypeInfo("Double", 8),
}


def name(n: str) -> str:
    return escape("swift", n)


def gen_type(t: Type) -> str:
    if t.kind == TypeKind.SCALAR:
        assert t.scalar is not None
        return typeMap[t.scalar].n
    elif t.kind == TypeKind.STRING:
        return "String"
    elif t.kind == TypeKind.VECTOR:
        assert t.element is not None
        return "[%s]" % gen_type(t.element)
    elif t.kind in (TypeKind.STRUCT, TypeKind.TABLE, TypeKind.ENUM):
        assert t.definition is not None
        return name(t.definition.name)
    elif t.kind == TypeKind.UNION:
        return "Table"
    else:
        raise ICE()


def literal(f: FieldDef) -> str:
    """The default value of a scalar field as a swift expression"""
    t = f.type
    v = f.default
    assert t.scalar is not None
    if t.kind == TypeKind.ENUM:
        assert isinstance(t.definition, EnumDef)
        ev = t.definition.by_value(int(v or 0))
        if ev is None:
            raise SchemaError(
                "%s: default value %d is not a member of enum %s"
                % (f.name, int(v or 0), t.definition.name)
            )
        return "%s.%s" % (name(t.definition.name), name(ev.name))
    elif t.scalar == ScalarKind.BOOL:
        return "true" if v else "false"
    elif t.scalar in FLOAT_KINDS:
        assert v is not None
        fv = float(v)
        if math.isnan(fv):
            return ".nan"
        if math.isinf(fv):
            return "-.infinity" if fv < 0 else ".infinity"
        return repr(fv)
    else:
        return str(int(v or 0))


def struct_literal(f: FieldDef) -> ty.Optional[str]:
    """The default of a struct member, None for an enum without a zero member"""
    t = f.type
    if t.kind == TypeKind.ENUM:
        assert isinstance(t.definition, EnumDef)
        if t.definition.by_value(int(f.default or 0)) is None:
            return None
    return literal(f)


def raw(f: FieldDef, expr: str) -> str:
    """The value written to the buffer for expr"""
    if f.type.kind == TypeKind.ENUM:
        return "%s.rawValue" % expr
    return expr


class Generator(generator.Generator):
    extension = "swift"

    def output_doc(self, o: Printer, doc: ty.Optional[ty.List[str]], indent: str = "") -> None:
        if not doc:
            return
        for line in doc:
            o(("%s/// %s" % (indent, line)).rstrip())

    def begin_file(self, o: Printer, units: ty.List[ty.Union[EnumDef, RecordDef]]) -> None:
        o("// %s" % BANNER)
        o()
        o("import Foundation")
        o("import FlatBuffers")
        o()

    def generate_enum(self, o: Printer, node: EnumDef) -> None:
        self.output_doc(o, node.doc)
        o("public enum %s: %s {" % (name(node.name), typeMap[node.underlying].n))
        for ev in node.values:
            self.output_doc(o, ev.doc, "    ")
            o("    case %s = %d" % (name(ev.name), ev.value))
        o("}")
        o()

    def generate_table_accessor(self, o: Printer, s: DeclareAccessor) -> None:
        f = s.field
        tn = gen_type(f.type)
        self.output_doc(o, f.doc, "    ")
        if not s.supported:
            self.generate_unavailable(o, f, tn)
            return
        d = literal(f)
        o("    public var %s: %s {" % (name(lcamel(f.name)), tn))
        o("        let o = offset(vtableElementIndex: %d)" % (4 + 2 * s.slot))
        o("        if o == 0 { return %s }" % d)
        if f.type.kind == TypeKind.ENUM:
            o("        return %s(rawValue: getValue(uoffset: o + tablePosition)) ?? %s" % (tn, d))
        else:
            o("        return getValue(uoffset: o + tablePosition)")
        o("    }")
        o()

    def generate_struct_accessor(self, o: Printer, s: DeclareStructAccessor) -> None:
        f = s.field
        tn = gen_type(f.type)
        self.output_doc(o, f.doc, "    ")
        if not s.supported:
            self.generate_unavailable(o, f, tn)
            return
        o("    public var %s: %s {" % (name(lcamel(f.name)), tn))
        if f.type.kind == TypeKind.ENUM:
            d = struct_literal(f)
            o(
                "        return %s(rawValue: getValue(uoffset: tablePosition + %d))%s"
                % (tn, s.offset, " ?? %s" % d if d is not None else "!")
            )
        else:
            o("        return getValue(uoffset: tablePosition + %d)" % s.offset)
        o("    }")
        o()

    def generate_unavailable(self, o: Printer, f: FieldDef, tn: str) -> None:
        o(
            '    @available(*, unavailable, message: "%s fields cannot be read yet")'
            % describe(f.type)
        )
        o("    public var %s: %s {" % (name(lcamel(f.name)), tn))
        o('        fatalError("%s is not readable")' % f.name)
        o("    }")
        o()

    def add_name(self, f: FieldDef) -> str:
        return "add%s" % ucamel(f.name)

    def add_param(self, s: DeclareAdd) -> str:
        return gen_type(s.field.type) if s.kind == AddKind.SCALAR else "UOffset"

    def generate_add(self, o: Printer, s: DeclareAdd) -> None:
        f = s.field
        p = name(lcamel(f.name))
        o(
            "    public static func %s(_ builder: Builder, _ %s: %s) {"
            % (self.add_name(f), p, self.add_param(s))
        )
        if s.kind == AddKind.SCALAR:
            o(
                "        builder.add(vTableIndex: %d, value: %s, defaultValue: %s)"
                % (s.slot, raw(f, p), raw(f, literal(f)))
            )
        elif s.kind == AddKind.OFFSET:
            o("        builder.add(vTableIndex: %d, offset: %s)" % (s.slot, p))
        elif s.kind == AddKind.STRUCT:
            o(
                "        builder.addStruct(vTableIndex: %d, structOffset: %s, defaultOffset: 0)"
                % (s.slot, p)
            )
        else:
            raise ICE()
        o("    }")
        o()

    def generate_create(self, o: Printer, record: RecordDef, s: DeclareCreate) -> None:
        rn = name(record.name)
        params = ["_ builder: Builder"]
        for a in s.adds:
            d = literal(a.field) if a.kind == AddKind.SCALAR else "0"
            params.append("%s: %s = %s" % (name(lcamel(a.field.name)), self.add_param(a), d))
        o(
            "    public static func create%s(%s) -> UOffset {"
            % (record.name, ", ".join(params))
        )
        o("        %s.start%s(builder)" % (rn, record.name))
        for a in s.adds:
            o(
                "        %s.%s(builder, %s)"
                % (rn, self.add_name(a.field), name(lcamel(a.field.name)))
            )
        o("        return %s.end%s(builder)" % (rn, record.name))
        o("    }")
        o()

    def generate_lookup(self, o: Printer, record: RecordDef, s: DeclareLookup) -> None:
        rn = name(record.name)
        k = s.key
        if s.supported:
            o(
                "    public static func lookupByKey(data: Data, positions: [UOffset], key: %s) -> %s? {"
                % (gen_type(k.type), rn)
            )
        else:
            o(
                "    public static func lookupByKey(data: Data, positions: [UOffset], compare: (%s) -> Int) -> %s? {"
                % (rn, rn)
            )
        o("        var lo = 0")
        o("        var hi = positions.count - 1")
        o("        while lo <= hi {")
        o("            let mid = lo + (hi - lo) / 2")
        o("            let table = %s(data: data, tablePosition: positions[mid])" % rn)
        if s.supported:
            value = raw(k, "table.%s" % name(lcamel(k.name)))
            key = raw(k, "key")
            if k.type.scalar == ScalarKind.BOOL:
                value = "(%s ? 1 : 0)" % value
                key = "(%s ? 1 : 0)" % key
            o("            let value = %s" % value)
            o("            if value == %s { return table }" % key)
            o("            if value < %s { lo = mid + 1 } else { hi = mid - 1 }" % key)
        else:
            o("            let c = compare(table)")
            o("            if c == 0 { return table }")
            o("            if c < 0 { lo = mid + 1 } else { hi = mid - 1 }")
        o("        }")
        o("        return nil")
        o("    }")
        o()

    def generate_struct_create(
        self, o: Printer, record: RecordDef, s: DeclareStructCreate
    ) -> None:
        params = ["_ builder: Builder"]
        for n, f in s.args:
            d = struct_literal(f)
            p = "%s: %s" % (name(lcamel(n)), gen_type(f.type))
            params.append(p if d is None else "%s = %s" % (p, d))
        o(
            "    public static func create%s(%s) -> UOffset {"
            % (record.name, ", ".join(params))
        )
        for step in s.steps:
            if isinstance(step, StructPrep):
                o(
                    "        builder.prep(size: %d, additionalBytes: %d)"
                    % (step.minalign, step.bytesize)
                )
            elif isinstance(step, StructPad):
                o("        builder.pad(byteSize: %d)" % step.size)
            elif isinstance(step, StructPut):
                o("        builder.put(%s)" % raw(step.field, name(lcamel(step.name))))
            else:
                raise ICE()
        o("        return builder.currentOffset")
        o("    }")
        o()

    def generate_record(self, o: Printer, definition: Definition) -> None:
        record = definition.record
        rn = name(record.name)
        self.output_doc(o, record.doc)
        o("public struct %s: Table {" % rn)
        o("    public var data: Data")
        o("    public var tablePosition: UOffset")
        o()
        o("    public init(data: Data, tablePosition: UOffset) {")
        o("        self.data = data")
        o("        self.tablePosition = tablePosition")
        o("    }")
        o()
        for s in definition.statements:
            if isinstance(s, DeclareAccessor):
                self.generate_table_accessor(o, s)
            elif isinstance(s, DeclareStructAccessor):
                self.generate_struct_accessor(o, s)
            elif isinstance(s, DeclareStart):
                o("    public static func start%s(_ builder: Builder) {" % record.name)
                o("        builder.startObject(fieldCount: %d)" % s.field_count)
                o("    }")
                o()
            elif isinstance(s, DeclareAdd):
                self.generate_add(o, s)
            elif isinstance(s, DeclareEnd):
                o("    public static func end%s(_ builder: Builder) -> UOffset {" % record.name)
                o("        let o = builder.endObject()")
                for r in s.required:
                    o("        builder.required(table: o, vTableIndex: %d)  // %s" % (r.slot, r.field.name))
                o("        return o")
                o("    }")
                o()
            elif isinstance(s, DeclareCreate):
                self.generate_create(o, record, s)
            elif isinstance(s, DeclareFinish):
                o(
                    "    public static func finish%sBuffer(builder: Builder, offset: UOffset) {"
                    % record.name
                )
                if s.file_identifier:
                    o(
                        '        builder.finish(rootTable: offset, fileIdentifier: "%s")'
                        % cescape(s.file_identifier.encode("utf-8"))
                    )
                else:
                    o("        builder.finish(rootTable: offset)")
                o("    }")
                o()
            elif isinstance(s, DeclareLookup):
                self.generate_lookup(o, record, s)
            elif isinstance(s, DeclareStructCreate):
                self.generate_struct_create(o, record, s)
            else:
                raise ICE()
        o("}")
        o()


def run(args) -> int:
    return run_generator(Generator, args)


def setup(subparsers) -> None:
    cmd = subparsers.add_parser("swift", help="Generate swift code")
    add_arguments(cmd)
    cmd.set_defaults(func=run)
