# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Compute vtable slots, builder write order and fixed struct layout
"""
import sys
import typing as ty

from .schema import (
    ICE,
    LARGEST_SCALAR_SIZE,
    OFFSET_SIZE,
    FieldDef,
    RecordDef,
    SchemaError,
    Type,
    TypeKind,
    describe,
    scalarSizes,
)

FieldPlan = ty.NamedTuple(
    "FieldPlan", [("field", FieldDef), ("slot", int), ("write_order", int)]
)

StructSlot = ty.NamedTuple(
    "StructSlot", [("field", FieldDef), ("offset", int), ("padding", int)]
)

StructLayout = ty.NamedTuple(
    "StructLayout",
    [("slots", ty.List[StructSlot]), ("minalign", int), ("bytesize", int)],
)


def field_size(t: Type) -> int:
    """Size class a table field is bucketed into when sorting by size"""
    if t.kind in (TypeKind.SCALAR, TypeKind.ENUM):
        assert t.scalar is not None
        return scalarSizes[t.scalar]
    elif t.kind in (
        TypeKind.STRING,
        TypeKind.VECTOR,
        TypeKind.STRUCT,
        TypeKind.TABLE,
        TypeKind.UNION,
    ):
        return OFFSET_SIZE
    else:
        raise ICE()


def plan(record: RecordDef) -> ty.List[FieldPlan]:
    """
    Plan the non deprecated fields of a record in declaration order.

    The slot of a field is its index among the emitted fields and never
    depends on sortbysize. Only write_order does: with sortbysize the builder
    writes the largest fields first, walking power of two size classes down
    from the largest scalar and taking fields in reverse declaration order
    within a class.
    """
    fields = [f for f in record.fields if not f.deprecated]
    if record.sortbysize and not record.fixed:
        order: ty.List[int] = []
        size = LARGEST_SCALAR_SIZE
        while size:
            for idx in range(len(fields) - 1, -1, -1):
                if field_size(fields[idx].type) == size:
                    order.append(idx)
            size //= 2
        if len(order) != len(fields):
            raise ICE("Field of %s not in any size class" % record.name)
    else:
        order = list(range(len(fields)))
    write_order = {idx: pos for pos, idx in enumerate(order)}
    return [FieldPlan(f, slot, write_order[slot]) for slot, f in enumerate(fields)]


def write_sequence(plans: ty.List[FieldPlan]) -> ty.List[FieldPlan]:
    return sorted(plans, key=lambda p: p.write_order)


def padding_bytes(size: int, alignment: int) -> int:
    return (-size) & (alignment - 1)


def inline_size(t: Type) -> ty.Tuple[int, int]:
    """(size, alignment) of a value stored inline in a struct"""
    if t.kind in (TypeKind.SCALAR, TypeKind.ENUM):
        assert t.scalar is not None
        s = scalarSizes[t.scalar]
        return (s, s)
    elif t.kind == TypeKind.STRUCT:
        assert isinstance(t.definition, RecordDef)
        layout = struct_layout(t.definition)
        return (layout.bytesize, layout.minalign)
    else:
        raise SchemaError("%s cannot be stored in a struct" % describe(t))


def struct_layout(record: RecordDef) -> StructLayout:
    """
    Place the fields of a fixed struct at naturally aligned offsets.

    The padding of a slot is the number of bytes following it, so that the
    next field, or the end of the struct, is aligned.
    """
    if not record.fixed:
        raise ICE("%s is not a struct" % record.name)
    slots: ty.List[StructSlot] = []
    bytesize = 0
    minalign = 1
    for f in record.fields:
        if f.deprecated:
            raise SchemaError("%s.%s: struct fields cannot be deprecated" % (record.name, f.name))
        size, alignment = inline_size(f.type)
        minalign = max(minalign, alignment)
        pad = padding_bytes(bytesize, alignment)
        if slots:
            slots[-1] = slots[-1]._replace(padding=pad)
        bytesize += pad
        slots.append(StructSlot(f, bytesize, 0))
        bytesize += size
    pad = padding_bytes(bytesize, minalign)
    if slots:
        slots[-1] = slots[-1]._replace(padding=pad)
    bytesize += pad
    return StructLayout(slots, minalign, bytesize)


def run(args) -> int:
    from .generator import load_schema

    try:
        schema = load_schema(args.schema)
        if schema is None:
            print("Schema is invalid", file=sys.stderr)
            return 1
        for record in schema.records:
            if record.fixed:
                layout = struct_layout(record)
                print(
                    "struct %s (size %d, align %d)"
                    % (record.name, layout.bytesize, layout.minalign)
                )
                for s in layout.slots:
                    print(
                        "  offset %-3d pad %-2d %s: %s"
                        % (s.offset, s.padding, s.field.name, describe(s.field.type))
                    )
            else:
                print(
                    "table %s%s"
                    % (record.name, " (sortbysize)" if record.sortbysize else "")
                )
                for p in plan(record):
                    flags = [
                        n
                        for n, v in (("required", p.field.required), ("key", p.field.key))
                        if v
                    ]
                    print(
                        "  slot %-3d write %-3d %s: %s%s"
                        % (
                            p.slot,
                            p.write_order,
                            p.field.name,
                            describe(p.field.type),
                            " (%s)" % ", ".join(flags) if flags else "",
                        )
                    )
    except (SchemaError, OSError) as err:
        print("Error: %s" % err, file=sys.stderr)
        return 1
    return 0


def setup(subparsers) -> None:
    cmd = subparsers.add_parser(
        "plan", help="Print vtable slots and write order of every definition"
    )
    cmd.add_argument("schema", help="schema to plan")
    cmd.set_defaults(func=run)
