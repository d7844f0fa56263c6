# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Parse a FlatBuffers schema and generate an ast
"""
import typing as ty

from .documents import Documents
from .error import error
from .fbs_tokenize import Token, TokenType, tokenize
from .schema import ICE

Metadata = ty.NamedTuple(
    "Metadata", [("identifier", Token), ("value", ty.Optional[Token])]
)


class AstNode(object):
    __slots__ = ["token", "doc_comment", "docstring", "document", "namespace"]
    token: ty.Optional[Token]
    doc_comment: ty.Optional[Token]
    docstring: ty.Optional[ty.List[str]]
    document: int
    namespace: str

    def __init__(
        self,
        token: ty.Optional[Token],
        document: int,
        doc_comment: ty.Optional[Token] = None,
    ) -> None:
        self.token = token
        self.doc_comment = doc_comment
        self.document = document
        self.docstring = None
        self.namespace = ""


class Namespace(AstNode):
    __slots__ = ["name"]
    name: str

    def __init__(self, token: Token, document: int, name: str) -> None:
        super().__init__(token, document)
        self.name = name


class Attribute(AstNode):
    __slots__ = ["identifier"]
    identifier: Token

    def __init__(self, token: Token, document: int, identifier: Token) -> None:
        super().__init__(token, document)
        self.identifier = identifier


class RootType(AstNode):
    __slots__ = ["identifier", "name"]
    identifier: Token
    name: str

    def __init__(self, token: Token, document: int, identifier: Token, name: str) -> None:
        super().__init__(token, document)
        self.identifier = identifier
        self.name = name


class FileIdentifier(AstNode):
    __slots__ = ["value"]
    value: Token

    def __init__(self, token: Token, document: int, value: Token) -> None:
        super().__init__(token, document)
        self.value = value


class FileExtension(AstNode):
    __slots__ = ["value"]
    value: Token

    def __init__(self, token: Token, document: int, value: Token) -> None:
        super().__init__(token, document)
        self.value = value


class Field(AstNode):
    __slots__ = ["identifier", "type_", "type_name", "list_", "value", "metadata"]
    identifier: Token
    type_: Token
    type_name: str
    list_: ty.Optional[Token]
    value: ty.Optional[Token]
    metadata: ty.List[Metadata]

    def __init__(
        self,
        token: Token,
        document: int,
        identifier: Token,
        type_: Token,
        type_name: str,
        list_: ty.Optional[Token],
        value: ty.Optional[Token],
        metadata: ty.List[Metadata],
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(token, document, doc_comment)
        self.identifier = identifier
        self.type_ = type_
        self.type_name = type_name
        self.list_ = list_
        self.value = value
        self.metadata = metadata


class Record(AstNode):
    __slots__ = ["identifier", "members", "metadata"]
    identifier: Token
    members: ty.List[Field]
    metadata: ty.List[Metadata]

    def __init__(
        self,
        token: Token,
        document: int,
        identifier: Token,
        members: ty.List[Field],
        metadata: ty.List[Metadata],
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(token, document, doc_comment)
        self.identifier = identifier
        self.members = members
        self.metadata = metadata


class Table(Record):
    __slots__: ty.List[str] = []


class Struct(Record):
    __slots__: ty.List[str] = []


class EnumMember(AstNode):
    __slots__ = ["identifier", "value"]
    identifier: Token
    value: ty.Optional[Token]

    def __init__(
        self,
        document: int,
        identifier: Token,
        value: ty.Optional[Token],
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(identifier, document, doc_comment)
        self.identifier = identifier
        self.value = value


class Enum(AstNode):
    __slots__ = ["identifier", "underlying", "members", "metadata"]
    identifier: Token
    underlying: Token
    members: ty.List[EnumMember]
    metadata: ty.List[Metadata]

    def __init__(
        self,
        token: Token,
        document: int,
        identifier: Token,
        underlying: Token,
        members: ty.List[EnumMember],
        metadata: ty.List[Metadata],
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(token, document, doc_comment)
        self.identifier = identifier
        self.underlying = underlying
        self.members = members
        self.metadata = metadata


class UnionMember(AstNode):
    __slots__ = ["identifier", "name"]
    identifier: Token
    name: str

    def __init__(
        self,
        document: int,
        identifier: Token,
        name: str,
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(identifier, document, doc_comment)
        self.identifier = identifier
        self.name = name


class Union(AstNode):
    __slots__ = ["identifier", "members", "metadata"]
    identifier: Token
    members: ty.List[UnionMember]
    metadata: ty.List[Metadata]

    def __init__(
        self,
        token: Token,
        document: int,
        identifier: Token,
        members: ty.List[UnionMember],
        metadata: ty.List[Metadata],
        doc_comment: ty.Optional[Token],
    ) -> None:
        super().__init__(token, document, doc_comment)
        self.identifier = identifier
        self.members = members
        self.metadata = metadata


class ParseError(Exception):
    def __init__(self, token: Token, message: str, context: str) -> None:
        super().__init__(message)
        self.token = token
        self.message = message
        self.context = context

    def describe(self, documents: Documents) -> None:
        error(documents, self.context, self.token, self.message, "Parse error")


VALUE_TOKENS = [
    TokenType.NUMBER,
    TokenType.TRUE,
    TokenType.FALSE,
    TokenType.IDENTIFIER,
]


class Parser:
    token: ty.Optional[Token] = None

    def __init__(self, documents: Documents) -> None:
        self.documents = documents
        self.document = self.documents.root
        self.tokenizer = tokenize(self.document.content, self.document.id)
        self.token = None
        self.context = ""
        self.next_token()

    def check_token(self, t: Token, types: ty.List[TokenType]) -> None:
        if t.type not in types:
            raise ParseError(
                t,
                "Expected one of %s got %s" % (", ".join(map(str, types)), t.type),
                self.context,
            )

    def consume_token(self, types: ty.List[TokenType]) -> Token:
        assert self.token is not None
        t = self.token
        self.check_token(t, types)
        self.next_token()
        return t

    def next_token(self) -> None:
        self.token = next(self.tokenizer)

    def value(self, t: Token) -> str:
        return self.documents.by_id[t.document].content[t.index : t.index + t.length]

    def parse_qualified_name(self) -> ty.Tuple[Token, str]:
        """Parse a possibly namespace qualified name, returning a token spanning all of it"""
        first = self.consume_token([TokenType.IDENTIFIER])
        last = first
        parts = [self.value(first)]
        assert self.token is not None
        while self.token.type == TokenType.DOT:
            self.next_token()
            last = self.consume_token([TokenType.IDENTIFIER])
            parts.append(self.value(last))
        span = Token(
            TokenType.IDENTIFIER,
            first.index,
            last.index + last.length - first.index,
            first.document,
        )
        return span, ".".join(parts)

    def parse_metadata(self) -> ty.List[Metadata]:
        assert self.token is not None
        if self.token.type != TokenType.LPAREN:
            return []
        self.next_token()
        ans: ty.List[Metadata] = []
        while True:
            i = self.consume_token([TokenType.IDENTIFIER])
            v: ty.Optional[Token] = None
            if self.token.type == TokenType.COLON:
                self.next_token()
                v = self.consume_token(VALUE_TOKENS + [TokenType.STRING])
            ans.append(Metadata(i, v))
            t = self.consume_token([TokenType.COMMA, TokenType.RPAREN])
            if t.type == TokenType.RPAREN:
                break
        return ans

    def parse_fields(self) -> ty.List[Field]:
        self.consume_token([TokenType.LBRACE])
        members: ty.List[Field] = []
        doc_comment: ty.Optional[Token] = None
        while True:
            t = self.consume_token(
                [TokenType.RBRACE, TokenType.IDENTIFIER, TokenType.DOCCOMMENT]
            )
            if t.type == TokenType.DOCCOMMENT:
                doc_comment = t
                continue
            elif t.type == TokenType.RBRACE:
                break
            assert self.token is not None
            colon = self.consume_token([TokenType.COLON])
            list_: ty.Optional[Token] = None
            if self.token.type == TokenType.LBRACKET:
                list_ = self.consume_token([TokenType.LBRACKET])
            type_, type_name = self.parse_qualified_name()
            if list_:
                self.consume_token([TokenType.RBRACKET])
            value: ty.Optional[Token] = None
            if self.token.type == TokenType.EQUAL:
                self.next_token()
                value = self.consume_token(VALUE_TOKENS)
            metadata = self.parse_metadata()
            self.consume_token([TokenType.SEMICOLON])
            members.append(
                Field(
                    colon,
                    self.document.id,
                    t,
                    type_,
                    type_name,
                    list_,
                    value,
                    metadata,
                    doc_comment,
                )
            )
            doc_comment = None
        return members

    def parse_enum_members(self) -> ty.List[EnumMember]:
        self.consume_token([TokenType.LBRACE])
        members: ty.List[EnumMember] = []
        doc_comment: ty.Optional[Token] = None
        while True:
            t = self.consume_token(
                [TokenType.RBRACE, TokenType.IDENTIFIER, TokenType.DOCCOMMENT]
            )
            if t.type == TokenType.DOCCOMMENT:
                doc_comment = t
                continue
            elif t.type == TokenType.RBRACE:
                break
            assert self.token is not None
            value: ty.Optional[Token] = None
            if self.token.type == TokenType.EQUAL:
                self.next_token()
                value = self.consume_token([TokenType.NUMBER])
            members.append(EnumMember(self.document.id, t, value, doc_comment))
            doc_comment = None
            if self.consume_token([TokenType.COMMA, TokenType.RBRACE]).type == TokenType.RBRACE:
                break
        return members

    def parse_union_members(self) -> ty.List[UnionMember]:
        self.consume_token([TokenType.LBRACE])
        members: ty.List[UnionMember] = []
        doc_comment: ty.Optional[Token] = None
        while True:
            assert self.token is not None
            if self.token.type == TokenType.DOCCOMMENT:
                doc_comment = self.consume_token([TokenType.DOCCOMMENT])
                continue
            if self.token.type == TokenType.RBRACE:
                self.next_token()
                break
            identifier, name = self.parse_qualified_name()
            members.append(UnionMember(self.document.id, identifier, name, doc_comment))
            doc_comment = None
            if self.consume_token([TokenType.COMMA, TokenType.RBRACE]).type == TokenType.RBRACE:
                break
        return members

    def parse_document(self) -> ty.List[AstNode]:
        ans: ty.List[AstNode] = []
        doc_comment: ty.Optional[Token] = None
        assert self.token is not None
        while self.token.type != TokenType.EOF:
            self.context = "schema"
            t = self.consume_token(
                [
                    TokenType.STRUCT,
                    TokenType.ENUM,
                    TokenType.TABLE,
                    TokenType.NAMESPACE,
                    TokenType.UNION,
                    TokenType.DOCCOMMENT,
                    TokenType.ROOT_TYPE,
                    TokenType.FILE_IDENTIFIER,
                    TokenType.FILE_EXTENSION,
                    TokenType.ATTRIBUTE,
                    TokenType.INCLUDE,
                ]
            )
            if t.type == TokenType.INCLUDE:
                raise ParseError(t, "Includes are not supported", self.context)
            elif t.type == TokenType.DOCCOMMENT:
                doc_comment = t
                continue
            elif t.type == TokenType.NAMESPACE:
                _, name = self.parse_qualified_name()
                self.consume_token([TokenType.SEMICOLON])
                ans.append(Namespace(t, self.document.id, name))
            elif t.type == TokenType.ATTRIBUTE:
                i = self.consume_token([TokenType.STRING, TokenType.IDENTIFIER])
                self.consume_token([TokenType.SEMICOLON])
                ans.append(Attribute(t, self.document.id, i))
            elif t.type == TokenType.ROOT_TYPE:
                i, name = self.parse_qualified_name()
                self.consume_token([TokenType.SEMICOLON])
                ans.append(RootType(t, self.document.id, i, name))
            elif t.type == TokenType.FILE_IDENTIFIER:
                v = self.consume_token([TokenType.STRING])
                self.consume_token([TokenType.SEMICOLON])
                ans.append(FileIdentifier(t, self.document.id, v))
            elif t.type == TokenType.FILE_EXTENSION:
                v = self.consume_token([TokenType.STRING])
                self.consume_token([TokenType.SEMICOLON])
                ans.append(FileExtension(t, self.document.id, v))
            elif t.type in (TokenType.STRUCT, TokenType.TABLE):
                i = self.consume_token([TokenType.IDENTIFIER])
                self.context = "%s %s" % (self.value(t), self.value(i))
                metadata = self.parse_metadata()
                cls = Struct if t.type == TokenType.STRUCT else Table
                ans.append(
                    cls(
                        t,
                        self.document.id,
                        i,
                        self.parse_fields(),
                        metadata,
                        doc_comment,
                    )
                )
            elif t.type == TokenType.ENUM:
                i = self.consume_token([TokenType.IDENTIFIER])
                self.context = "enum %s" % self.value(i)
                self.consume_token([TokenType.COLON])
                underlying = self.consume_token([TokenType.IDENTIFIER])
                metadata = self.parse_metadata()
                ans.append(
                    Enum(
                        t,
                        self.document.id,
                        i,
                        underlying,
                        self.parse_enum_members(),
                        metadata,
                        doc_comment,
                    )
                )
            elif t.type == TokenType.UNION:
                i = self.consume_token([TokenType.IDENTIFIER])
                self.context = "union %s" % self.value(i)
                metadata = self.parse_metadata()
                ans.append(
                    Union(
                        t,
                        self.document.id,
                        i,
                        self.parse_union_members(),
                        metadata,
                        doc_comment,
                    )
                )
            else:
                raise ICE()
            doc_comment = None
            if self.token.type == TokenType.SEMICOLON:
                self.next_token()
        return ans
