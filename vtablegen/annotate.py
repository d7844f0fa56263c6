# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Resolve names, types and default values of the ast into a schema
"""
from typing import Dict, List, Optional, Set, Tuple, Union as TyUnion

from .documents import Documents
from .error import error
from .fbs_tokenize import Token, TokenType
from .parser import (
    AstNode,
    Attribute,
    Enum,
    Field,
    FileExtension,
    FileIdentifier,
    Metadata,
    Namespace,
    Record,
    RootType,
    Struct,
    Table,
    Union,
)
from .schema import (
    FLOAT_KINDS,
    EnumDef,
    EnumVal,
    FieldDef,
    RecordDef,
    ScalarKind,
    Schema,
    Type,
    TypeKind,
    scalarSizes,
)

scalarNames: Dict[str, ScalarKind] = {
    "bool": ScalarKind.BOOL,
    "byte": ScalarKind.BYTE,
    "int8": ScalarKind.BYTE,
    "ubyte": ScalarKind.UBYTE,
    "uint8": ScalarKind.UBYTE,
    "short": ScalarKind.SHORT,
    "int16": ScalarKind.SHORT,
    "ushort": ScalarKind.USHORT,
    "uint16": ScalarKind.USHORT,
    "int": ScalarKind.INT,
    "int32": ScalarKind.INT,
    "uint": ScalarKind.UINT,
    "uint32": ScalarKind.UINT,
    "long": ScalarKind.LONG,
    "int64": ScalarKind.LONG,
    "ulong": ScalarKind.ULONG,
    "uint64": ScalarKind.ULONG,
    "float": ScalarKind.FLOAT,
    "float32": ScalarKind.FLOAT,
    "double": ScalarKind.DOUBLE,
    "float64": ScalarKind.DOUBLE,
}

UNSIGNED_KINDS = (
    ScalarKind.BOOL,
    ScalarKind.UBYTE,
    ScalarKind.USHORT,
    ScalarKind.UINT,
    ScalarKind.ULONG,
)

FIELD_ATTRIBUTES = ("deprecated", "required", "key")
RECORD_ATTRIBUTES = ("original_order", "force_align")


def int_range(kind: ScalarKind) -> Tuple[int, int]:
    if kind == ScalarKind.BOOL:
        return (0, 1)
    bits = scalarSizes[kind] * 8
    if kind in UNSIGNED_KINDS:
        return (0, 2 ** bits - 1)
    return (-(2 ** (bits - 1)), 2 ** (bits - 1) - 1)


def parse_int(text: str) -> int:
    sign = 1
    if text and text[0] in "+-":
        if text[0] == "-":
            sign = -1
        text = text[1:]
    if text[0:2] in ("0x", "0X"):
        return sign * int(text[2:], 16)
    return sign * int(text)


def unquote(text: str) -> str:
    return text[1:-1].encode("utf-8").decode("unicode_escape")


Definition = TyUnion[RecordDef, EnumDef]


class Annotater:
    definitions: Dict[str, Tuple[AstNode, Definition]]
    attributes: Set[str]

    def __init__(self, documents: Documents) -> None:
        self.documents = documents
        self.errors = 0
        self.context = ""
        self.definitions = {}
        self.attributes = set()

    def value(self, t: Token) -> str:
        return self.documents.by_id[t.document].content[t.index : t.index + t.length]

    def error(self, token: Optional[Token], message: str) -> None:
        assert token is not None
        self.errors += 1
        error(self.documents, self.context, token, message)

    def create_doc_string(self, node: AstNode) -> Optional[List[str]]:
        if not node.doc_comment:
            return None
        v = self.value(node.doc_comment)
        node.docstring = []
        for line in v.split("\n"):
            line = line.strip()
            if line[0:3] == "///":
                line = line[3:]
            if line[0:1] == " ":
                line = line[1:]
            if node.docstring or line:
                node.docstring.append(line.rstrip())
        while node.docstring and not node.docstring[-1]:
            node.docstring.pop()
        return node.docstring or None

    def qualified(self, namespace: str, name: str) -> str:
        return "%s.%s" % (namespace, name) if namespace else name

    def lookup(self, namespace: str, name: str) -> Optional[Definition]:
        """Find a definition by name, searching the enclosing namespaces innermost first"""
        parts = namespace.split(".") if namespace else []
        while True:
            full = ".".join(parts + [name])
            if full in self.definitions:
                return self.definitions[full][1]
            if not parts:
                return None
            parts.pop()

    def declare(self, node: AstNode, namespace: str) -> None:
        assert isinstance(node, (Record, Enum, Union))
        name = self.value(node.identifier)
        full = self.qualified(namespace, name)
        node.namespace = namespace
        if full in self.definitions:
            self.error(node.identifier, "Duplicate name")
            self.error(self.definitions[full][0].identifier, "Previously defined here")
            return
        doc = self.create_doc_string(node)
        d: Definition
        if isinstance(node, Table):
            original_order = any(
                self.value(m.identifier) == "original_order" for m in node.metadata
            )
            d = RecordDef(
                name, [], fixed=False, sortbysize=not original_order, namespace=namespace, doc=doc
            )
        elif isinstance(node, Struct):
            d = RecordDef(name, [], fixed=True, namespace=namespace, doc=doc)
        elif isinstance(node, Enum):
            d = EnumDef(name, [], namespace=namespace, doc=doc)
        else:
            d = EnumDef(name, [], ScalarKind.UBYTE, is_union=True, namespace=namespace, doc=doc)
        self.definitions[full] = (node, d)

    def check_metadata(self, metadata: List[Metadata], known: Tuple[str, ...]) -> None:
        for m in metadata:
            n = self.value(m.identifier)
            if n not in known and n not in self.attributes:
                self.error(m.identifier, "Unknown attribute '%s'" % n)

    def visit_enum(self, node: Enum, enum_def: EnumDef) -> None:
        self.context = "enum %s" % enum_def.name
        self.check_metadata(node.metadata, ("bit_flags",))
        u = self.value(node.underlying)
        kind = scalarNames.get(u)
        if kind is None or kind in FLOAT_KINDS or kind == ScalarKind.BOOL:
            self.error(node.underlying, "Underlying type of an enum must be an integer type")
            return
        enum_def.underlying = kind
        lo, hi = int_range(kind)
        index = 0
        seen: Dict[str, Token] = {}
        for ev in node.members:
            name = self.value(ev.identifier)
            if name in seen:
                self.error(ev.identifier, "Duplicate name")
                self.error(seen[name], "Previously defined here")
                continue
            seen[name] = ev.identifier
            if ev.value is not None:
                try:
                    v = parse_int(self.value(ev.value))
                except ValueError:
                    self.error(ev.value, "Must be an integer")
                    continue
                if enum_def.values and v <= enum_def.values[-1].value:
                    self.error(ev.value, "Enum values must be specified in ascending order")
                index = v
            if not lo <= index <= hi:
                self.error(
                    ev.value or ev.identifier,
                    "Value %d outside allowed range %d to %d" % (index, lo, hi),
                )
            enum_def.values.append(
                EnumVal(name, index, self.create_doc_string(ev))
            )
            index += 1

    def visit_union(self, node: Union, union_def: EnumDef) -> None:
        self.context = "union %s" % union_def.name
        union_def.values.append(EnumVal("NONE", 0))
        seen: Set[str] = set()
        for idx, m in enumerate(node.members):
            d = self.lookup(node.namespace, m.name)
            if not isinstance(d, RecordDef) or d.fixed:
                self.error(m.identifier, "Union members must be tables")
                continue
            if d.name in seen:
                self.error(m.identifier, "Duplicate name")
                continue
            seen.add(d.name)
            union_def.values.append(
                EnumVal(d.name, idx + 1, self.create_doc_string(m), d)
            )
        if len(union_def.values) > 256:
            self.error(node.identifier, "Too many union members")

    def resolve_type(self, node: Record, f: Field) -> Optional[Type]:
        name = f.type_name
        t: Optional[Type] = None
        if name in scalarNames:
            t = Type.basic(scalarNames[name])
        elif name == "string":
            t = Type.string()
        else:
            d = self.lookup(node.namespace, name)
            if isinstance(d, RecordDef):
                t = Type.struct(d) if d.fixed else Type.table(d)
            elif isinstance(d, EnumDef):
                t = Type.union(d) if d.is_union else Type.enum(d)
            else:
                self.error(f.type_, "Unknown type")
                return None
        if f.list_:
            if t.kind == TypeKind.UNION:
                self.error(f.type_, "Vectors of unions are not supported")
                return None
            t = Type.vector(t)
        return t

    def get_default(self, f: Field, t: Type) -> TyUnion[int, float, bool, None]:
        value = f.value
        if value is None:
            return None
        if not t.is_scalar:
            self.error(value, "Default values are only allowed for scalars")
            return None
        text = self.value(value)
        assert t.scalar is not None
        if t.kind == TypeKind.ENUM:
            enum_def = t.definition
            assert isinstance(enum_def, EnumDef)
            if value.type == TokenType.IDENTIFIER:
                ev = enum_def.lookup(text)
                if ev is None:
                    self.error(value, "Not member of enum")
                    return None
                return ev.value
            if value.type == TokenType.NUMBER:
                try:
                    v = parse_int(text)
                except ValueError:
                    self.error(value, "Must be an integer")
                    return None
                if enum_def.by_value(v) is None:
                    self.error(value, "Not member of enum")
                    return None
                return v
        elif t.scalar == ScalarKind.BOOL:
            if value.type in (TokenType.TRUE, TokenType.FALSE):
                return value.type == TokenType.TRUE
            if value.type == TokenType.NUMBER and text in ("0", "1"):
                return text == "1"
        elif t.scalar in FLOAT_KINDS:
            if value.type == TokenType.NUMBER or (
                value.type == TokenType.IDENTIFIER and text in ("nan", "inf", "infinity")
            ):
                try:
                    return float(text)
                except ValueError:
                    try:
                        return float(parse_int(text))
                    except ValueError:
                        pass
                self.error(value, "Must be a float")
                return None
        elif value.type == TokenType.NUMBER:
            try:
                v = parse_int(text)
            except ValueError:
                self.error(value, "Must be an integer")
                return None
            lo, hi = int_range(t.scalar)
            if lo <= v <= hi:
                return v
            self.error(value, "Value %d outside allowed range %d to %d" % (v, lo, hi))
            return None
        self.error(value, "Invalid default value for %s" % t.scalar.value)
        return None

    def visit_record(self, node: Record, record: RecordDef) -> None:
        self.context = "%s %s" % ("struct" if record.fixed else "table", record.name)
        self.check_metadata(node.metadata, RECORD_ATTRIBUTES)
        seen: Dict[str, Token] = {}
        for f in node.members:
            name = self.value(f.identifier)
            flags: Dict[str, Token] = {}
            for m in f.metadata:
                flags[self.value(m.identifier)] = m.identifier
            self.check_metadata(f.metadata, FIELD_ATTRIBUTES)
            t = self.resolve_type(node, f)
            if t is None:
                continue
            if record.fixed:
                if t.kind not in (TypeKind.SCALAR, TypeKind.ENUM, TypeKind.STRUCT):
                    self.error(f.type_, "Only scalars, enums and structs are allowed in structs")
                    continue
                if f.value is not None:
                    self.error(f.value, "Default values are not allowed in structs")
                for a in ("deprecated", "required"):
                    if a in flags:
                        self.error(flags[a], "Not allowed in structs")
            if "required" in flags and t.is_scalar:
                self.error(flags["required"], "Scalar fields cannot be required")
            names = [name]
            if t.kind == TypeKind.UNION:
                names.insert(0, "%s_type" % name)
            for n in names:
                if n in seen:
                    self.error(f.identifier, "Name conflict")
                    self.error(seen[n], "Conflicts with this")
                seen[n] = f.identifier
            doc = self.create_doc_string(f)
            deprecated = "deprecated" in flags and not record.fixed
            if t.kind == TypeKind.UNION:
                assert isinstance(t.definition, EnumDef)
                record.fields.append(
                    FieldDef(
                        "%s_type" % name,
                        Type.enum(t.definition),
                        deprecated=deprecated,
                        doc=doc,
                    )
                )
            field = FieldDef(
                name,
                t,
                self.get_default(f, t),
                deprecated=deprecated,
                required="required" in flags and not t.is_scalar,
                key="key" in flags,
                doc=doc,
            )
            if t.kind == TypeKind.ENUM and f.value is None and not record.fixed:
                assert isinstance(t.definition, EnumDef)
                if t.definition.by_value(0) is None:
                    self.error(
                        f.identifier,
                        "Default value 0 is not a member of enum %s" % t.definition.name,
                    )
            if field.key and not record.fixed:
                if record.key is not None:
                    self.error(flags["key"], "Only one field may be the key")
                elif deprecated:
                    self.error(flags["key"], "The key field cannot be deprecated")
                else:
                    record.key = field
                    record.has_key = True
            record.fields.append(field)

    def check_recursion(self, record: RecordDef, path: List[RecordDef]) -> bool:
        if record in path:
            return False
        for f in record.fields:
            if f.type.kind == TypeKind.STRUCT:
                assert isinstance(f.type.definition, RecordDef)
                if not self.check_recursion(f.type.definition, path + [record]):
                    return False
        return True

    def annotate(self, ast: List[AstNode]) -> Optional[Schema]:
        namespace = ""
        root: Optional[RootType] = None
        file_identifier: Optional[FileIdentifier] = None
        file_extension: Optional[FileExtension] = None
        self.context = "schema"
        for node in ast:
            if isinstance(node, Namespace):
                namespace = node.name
            elif isinstance(node, Attribute):
                self.attributes.add(self.value(node.identifier).strip('"'))
            elif isinstance(node, (Record, Enum, Union)):
                self.declare(node, namespace)
            elif isinstance(node, RootType):
                node.namespace = namespace
                root = node
            elif isinstance(node, FileIdentifier):
                file_identifier = node
            elif isinstance(node, FileExtension):
                file_extension = node
            else:
                self.error(node.token, "Unknown thing")

        for node, d in self.definitions.values():
            if isinstance(node, Enum):
                assert isinstance(d, EnumDef)
                self.visit_enum(node, d)
        for node, d in self.definitions.values():
            if isinstance(node, Union):
                assert isinstance(d, EnumDef)
                self.visit_union(node, d)
        for node, d in self.definitions.values():
            if isinstance(node, Record):
                assert isinstance(d, RecordDef)
                self.visit_record(node, d)
        for node, d in self.definitions.values():
            if isinstance(d, RecordDef) and d.fixed and not self.check_recursion(d, []):
                self.context = "struct %s" % d.name
                self.error(node.identifier, "Struct contains itself")

        self.context = "schema"
        schema = Schema()
        for node, d in self.definitions.values():
            if isinstance(d, EnumDef):
                schema.enums.append(d)
            else:
                schema.records.append(d)
        if root is not None:
            d = self.lookup(root.namespace, root.name)
            if not isinstance(d, RecordDef):
                self.error(root.identifier, "Unknown type")
            elif d.fixed:
                self.error(root.identifier, "Root type must be a table")
            else:
                schema.root = d
        if file_identifier is not None:
            ident = unquote(self.value(file_identifier.value))
            if len(ident.encode("utf-8")) != 4:
                self.error(file_identifier.value, "File identifier must be exactly 4 characters")
            elif root is None:
                self.error(file_identifier.token, "A file identifier requires a root_type")
            else:
                schema.file_identifier = ident
        if file_extension is not None:
            schema.file_extension = unquote(self.value(file_extension.value))
        if self.errors:
            return None
        return schema


def annotate(documents: Documents, ast: List[AstNode]) -> Optional[Schema]:
    a = Annotater(documents)
    return a.annotate(ast)
