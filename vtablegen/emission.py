# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Turn a record into the statements a target renders: accessors and the
builder protocol for tables, fixed offset accessors and a create helper
for structs.
"""
import enum
import typing as ty

from .plan import FieldPlan, StructLayout, plan, struct_layout, write_sequence
from .schema import (
    ICE,
    FieldDef,
    RecordDef,
    Schema,
    SchemaError,
    Type,
    TypeKind,
    describe,
)


class AddKind(enum.Enum):
    SCALAR = 0
    OFFSET = 1
    STRUCT = 2


DeclareAccessor = ty.NamedTuple(
    "DeclareAccessor", [("field", FieldDef), ("slot", int), ("supported", bool)]
)
DeclareStructAccessor = ty.NamedTuple(
    "DeclareStructAccessor",
    [("field", FieldDef), ("offset", int), ("supported", bool)],
)
DeclareStart = ty.NamedTuple("DeclareStart", [("field_count", int)])
DeclareAdd = ty.NamedTuple(
    "DeclareAdd", [("field", FieldDef), ("slot", int), ("kind", AddKind)]
)
RequiredCheck = ty.NamedTuple("RequiredCheck", [("field", FieldDef), ("slot", int)])
DeclareEnd = ty.NamedTuple("DeclareEnd", [("required", ty.List[RequiredCheck])])
DeclareCreate = ty.NamedTuple("DeclareCreate", [("adds", ty.List[DeclareAdd])])
DeclareFinish = ty.NamedTuple(
    "DeclareFinish", [("file_identifier", ty.Optional[str])]
)
DeclareLookup = ty.NamedTuple(
    "DeclareLookup", [("key", FieldDef), ("slot", int), ("supported", bool)]
)

StructPrep = ty.NamedTuple("StructPrep", [("minalign", int), ("bytesize", int)])
StructPad = ty.NamedTuple("StructPad", [("size", int)])
StructPut = ty.NamedTuple("StructPut", [("name", str), ("field", FieldDef)])
StructStep = ty.Union[StructPrep, StructPad, StructPut]
DeclareStructCreate = ty.NamedTuple(
    "DeclareStructCreate",
    [("args", ty.List[ty.Tuple[str, FieldDef]]), ("steps", ty.List[StructStep])],
)

Statement = ty.Union[
    DeclareAccessor,
    DeclareStructAccessor,
    DeclareStart,
    DeclareAdd,
    DeclareEnd,
    DeclareCreate,
    DeclareFinish,
    DeclareLookup,
    DeclareStructCreate,
]

Definition = ty.NamedTuple(
    "Definition",
    [
        ("record", RecordDef),
        ("statements", ty.List[Statement]),
        ("warnings", ty.List[str]),
    ],
)


def readable(t: Type) -> bool:
    """Only scalar and enum fields get real accessor bodies"""
    return t.kind in (TypeKind.SCALAR, TypeKind.ENUM)


def add_kind(t: Type) -> AddKind:
    if t.kind in (TypeKind.SCALAR, TypeKind.ENUM):
        return AddKind.SCALAR
    elif t.kind in (TypeKind.STRING, TypeKind.VECTOR, TypeKind.TABLE, TypeKind.UNION):
        return AddKind.OFFSET
    elif t.kind == TypeKind.STRUCT:
        return AddKind.STRUCT
    else:
        raise ICE()


def accessors(record: RecordDef, plans: ty.List[FieldPlan]) -> ty.List[DeclareAccessor]:
    return [DeclareAccessor(p.field, p.slot, readable(p.field.type)) for p in plans]


def struct_accessors(
    record: RecordDef, layout: StructLayout
) -> ty.List[DeclareStructAccessor]:
    return [
        DeclareStructAccessor(s.field, s.offset, readable(s.field.type))
        for s in layout.slots
    ]


def required_checks(plans: ty.List[FieldPlan]) -> ty.List[RequiredCheck]:
    return [
        RequiredCheck(p.field, p.slot)
        for p in plans
        if p.field.required and not p.field.type.is_scalar
    ]


def builder(
    record: RecordDef, plans: ty.List[FieldPlan], schema: Schema
) -> ty.List[Statement]:
    """
    Statements of the builder protocol of a table.

    Adds are declared in slot order and keep their slot in the create
    helper, which calls them in write order.
    """
    if record.fixed:
        raise ICE("%s is a struct" % record.name)
    ans: ty.List[Statement] = [DeclareStart(len(plans))]
    adds = [DeclareAdd(p.field, p.slot, add_kind(p.field.type)) for p in plans]
    ans.extend(adds)
    ans.append(DeclareEnd(required_checks(plans)))
    if all(a.kind != AddKind.STRUCT for a in adds):
        ans.append(DeclareCreate([adds[p.slot] for p in write_sequence(plans)]))
    if schema.root is record:
        ans.append(DeclareFinish(schema.file_identifier or None))
    if record.has_key:
        if not plans:
            raise SchemaError("%s has a key but no fields" % record.name)
        key = [p for p in plans if p.field is record.key]
        if not key:
            raise SchemaError("%s has no key field" % record.name)
        ans.append(DeclareLookup(key[0].field, key[0].slot, readable(key[0].field.type)))
    return ans


def struct_builder(record: RecordDef, layout: StructLayout) -> DeclareStructCreate:
    args: ty.List[ty.Tuple[str, FieldDef]] = []
    steps: ty.List[StructStep] = []

    def visit(layout: StructLayout, prefix: str) -> None:
        steps.append(StructPrep(layout.minalign, layout.bytesize))
        for s in reversed(layout.slots):
            if s.padding:
                steps.append(StructPad(s.padding))
            name = prefix + s.field.name
            if s.field.type.kind == TypeKind.STRUCT:
                assert isinstance(s.field.type.definition, RecordDef)
                visit(struct_layout(s.field.type.definition), name + "_")
            else:
                steps.append(StructPut(name, s.field))

    def collect(layout: StructLayout, prefix: str) -> None:
        for s in layout.slots:
            name = prefix + s.field.name
            if s.field.type.kind == TypeKind.STRUCT:
                assert isinstance(s.field.type.definition, RecordDef)
                collect(struct_layout(s.field.type.definition), name + "_")
            else:
                args.append((name, s.field))

    collect(layout, "")
    visit(layout, "")
    return DeclareStructCreate(args, steps)


def emit_record(record: RecordDef, schema: Schema) -> Definition:
    statements: ty.List[Statement] = []
    if record.fixed:
        layout = struct_layout(record)
        statements.extend(struct_accessors(record, layout))
        statements.append(struct_builder(record, layout))
    else:
        plans = plan(record)
        statements.extend(accessors(record, plans))
        statements.extend(builder(record, plans, schema))
    warnings = [
        "%s.%s: no accessor is generated for %s fields"
        % (record.name, s.field.name, describe(s.field.type))
        for s in statements
        if isinstance(s, (DeclareAccessor, DeclareStructAccessor)) and not s.supported
    ]
    return Definition(record, statements, warnings)
