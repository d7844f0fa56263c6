# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Resolved, language neutral schema model consumed by the generators
"""
import enum
import typing as ty


class ICE(Exception):
    def __init__(self, message: str = "Internal compiler error") -> None:
        super().__init__(message)


class SchemaError(Exception):
    """The schema cannot be generated, for instance a key lookup on a table without fields"""

    pass


class ScalarKind(enum.Enum):
    BOOL = "bool"
    BYTE = "byte"
    UBYTE = "ubyte"
    SHORT = "short"
    USHORT = "ushort"
    INT = "int"
    UINT = "uint"
    LONG = "long"
    ULONG = "ulong"
    FLOAT = "float"
    DOUBLE = "double"


scalarSizes: ty.Dict[ScalarKind, int] = {
    ScalarKind.BOOL: 1,
    ScalarKind.BYTE: 1,
    ScalarKind.UBYTE: 1,
    ScalarKind.SHORT: 2,
    ScalarKind.USHORT: 2,
    ScalarKind.INT: 4,
    ScalarKind.UINT: 4,
    ScalarKind.LONG: 8,
    ScalarKind.ULONG: 8,
    ScalarKind.FLOAT: 4,
    ScalarKind.DOUBLE: 8,
}

# Size of the uoffset a table stores for strings, vectors, tables, unions and
# (for size sorting purposes) inline structs.
OFFSET_SIZE = 4
LARGEST_SCALAR_SIZE = 8

FLOAT_KINDS = (ScalarKind.FLOAT, ScalarKind.DOUBLE)


class TypeKind(enum.Enum):
    SCALAR = 0
    STRING = 1
    VECTOR = 2
    STRUCT = 3
    TABLE = 4
    ENUM = 5
    UNION = 6


class Type(object):
    __slots__ = ["kind", "scalar", "element", "definition"]
    kind: TypeKind
    scalar: ty.Optional[ScalarKind]
    element: ty.Optional["Type"]
    definition: ty.Optional[ty.Union["RecordDef", "EnumDef"]]

    def __init__(
        self,
        kind: TypeKind,
        scalar: ty.Optional[ScalarKind] = None,
        element: ty.Optional["Type"] = None,
        definition: ty.Optional[ty.Union["RecordDef", "EnumDef"]] = None,
    ) -> None:
        self.kind = kind
        self.scalar = scalar
        self.element = element
        self.definition = definition

    @classmethod
    def basic(cls, kind: ScalarKind) -> "Type":
        return cls(TypeKind.SCALAR, scalar=kind)

    @classmethod
    def string(cls) -> "Type":
        return cls(TypeKind.STRING)

    @classmethod
    def vector(cls, element: "Type") -> "Type":
        return cls(TypeKind.VECTOR, element=element)

    @classmethod
    def struct(cls, record: "RecordDef") -> "Type":
        return cls(TypeKind.STRUCT, definition=record)

    @classmethod
    def table(cls, record: "RecordDef") -> "Type":
        return cls(TypeKind.TABLE, definition=record)

    @classmethod
    def enum(cls, enum_def: "EnumDef") -> "Type":
        """An enum value, or the hidden type field of a union when enum_def.is_union"""
        return cls(TypeKind.ENUM, scalar=enum_def.underlying, definition=enum_def)

    @classmethod
    def union(cls, union_def: "EnumDef") -> "Type":
        return cls(TypeKind.UNION, definition=union_def)

    @property
    def is_scalar(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM)

    @property
    def is_offset(self) -> bool:
        return self.kind in (
            TypeKind.STRING,
            TypeKind.VECTOR,
            TypeKind.TABLE,
            TypeKind.UNION,
        )

    def __repr__(self) -> str:
        return "Type(%s)" % describe(self)


def describe(t: Type) -> str:
    """Schema notation of a type, used in diagnostics"""
    if t.kind == TypeKind.SCALAR:
        assert t.scalar is not None
        return t.scalar.value
    elif t.kind == TypeKind.STRING:
        return "string"
    elif t.kind == TypeKind.VECTOR:
        assert t.element is not None
        return "[%s]" % describe(t.element)
    elif t.kind in (TypeKind.STRUCT, TypeKind.TABLE, TypeKind.ENUM, TypeKind.UNION):
        assert t.definition is not None
        return t.definition.name
    else:
        raise ICE()


class EnumVal(object):
    __slots__ = ["name", "value", "doc", "definition"]

    def __init__(
        self,
        name: str,
        value: int,
        doc: ty.Optional[ty.List[str]] = None,
        definition: ty.Optional["RecordDef"] = None,
    ) -> None:
        self.name = name
        self.value = value
        self.doc = doc
        # The table a union member refers to
        self.definition = definition


class EnumDef(object):
    __slots__ = ["name", "namespace", "underlying", "values", "is_union", "doc"]
    name: str
    namespace: str
    underlying: ScalarKind
    values: ty.List[EnumVal]
    is_union: bool
    doc: ty.Optional[ty.List[str]]

    def __init__(
        self,
        name: str,
        values: ty.List[EnumVal],
        underlying: ScalarKind = ScalarKind.INT,
        is_union: bool = False,
        namespace: str = "",
        doc: ty.Optional[ty.List[str]] = None,
    ) -> None:
        self.name = name
        self.values = values
        self.underlying = underlying
        self.is_union = is_union
        self.namespace = namespace
        self.doc = doc

    def lookup(self, name: str) -> ty.Optional[EnumVal]:
        for v in self.values:
            if v.name == name:
                return v
        return None

    def by_value(self, value: int) -> ty.Optional[EnumVal]:
        for v in self.values:
            if v.value == value:
                return v
        return None


class FieldDef(object):
    __slots__ = ["name", "type", "default", "deprecated", "required", "key", "doc"]
    name: str
    type: Type
    default: ty.Union[int, float, bool, None]
    deprecated: bool
    required: bool
    key: bool
    doc: ty.Optional[ty.List[str]]

    def __init__(
        self,
        name: str,
        type_: Type,
        default: ty.Union[int, float, bool, None] = None,
        deprecated: bool = False,
        required: bool = False,
        key: bool = False,
        doc: ty.Optional[ty.List[str]] = None,
    ) -> None:
        self.name = name
        self.type = type_
        if default is None and type_.is_scalar:
            default = zero(type_)
        self.default = default
        self.deprecated = deprecated
        self.required = required
        self.key = key
        self.doc = doc

    def __repr__(self) -> str:
        return "FieldDef(%s: %s)" % (self.name, describe(self.type))


class RecordDef(object):
    """A table, or a struct when fixed is set"""

    __slots__ = [
        "name",
        "namespace",
        "fields",
        "fixed",
        "sortbysize",
        "has_key",
        "key",
        "doc",
    ]
    name: str
    namespace: str
    fields: ty.List[FieldDef]
    fixed: bool
    sortbysize: bool
    has_key: bool
    key: ty.Optional[FieldDef]
    doc: ty.Optional[ty.List[str]]

    def __init__(
        self,
        name: str,
        fields: ty.List[FieldDef],
        fixed: bool = False,
        sortbysize: bool = False,
        namespace: str = "",
        key: ty.Optional[FieldDef] = None,
        has_key: ty.Optional[bool] = None,
        doc: ty.Optional[ty.List[str]] = None,
    ) -> None:
        self.name = name
        self.fields = fields
        self.fixed = fixed
        self.sortbysize = sortbysize
        self.namespace = namespace
        self.key = key
        self.has_key = key is not None if has_key is None else has_key
        self.doc = doc

    def __repr__(self) -> str:
        return "RecordDef(%s%s)" % ("struct " if self.fixed else "table ", self.name)


class Schema(object):
    __slots__ = ["enums", "records", "root", "file_identifier", "file_extension"]
    enums: ty.List[EnumDef]
    records: ty.List[RecordDef]
    root: ty.Optional[RecordDef]
    file_identifier: ty.Optional[str]
    file_extension: ty.Optional[str]

    def __init__(
        self,
        enums: ty.Optional[ty.List[EnumDef]] = None,
        records: ty.Optional[ty.List[RecordDef]] = None,
        root: ty.Optional[RecordDef] = None,
        file_identifier: ty.Optional[str] = None,
        file_extension: ty.Optional[str] = None,
    ) -> None:
        self.enums = enums if enums is not None else []
        self.records = records if records is not None else []
        self.root = root
        self.file_identifier = file_identifier
        self.file_extension = file_extension


def zero(t: Type) -> ty.Union[int, float, bool]:
    assert t.scalar is not None
    if t.scalar == ScalarKind.BOOL:
        return False
    if t.scalar in FLOAT_KINDS:
        return 0.0
    return 0
