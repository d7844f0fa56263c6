import typing as ty
from enum import Enum


class TokenType(Enum):
    BAD = 0
    COLON = 1
    COMMA = 2
    SEMICOLON = 3
    EQUAL = 4
    LBRACE = 5
    RBRACE = 6
    LBRACKET = 7
    RBRACKET = 8
    LPAREN = 9
    RPAREN = 10
    DOT = 11
    EOF = 12
    IDENTIFIER = 13
    NUMBER = 14
    STRING = 15
    DOCCOMMENT = 16
    NAMESPACE = 17
    TABLE = 18
    STRUCT = 19
    ENUM = 20
    UNION = 21
    ROOT_TYPE = 22
    FILE_IDENTIFIER = 23
    FILE_EXTENSION = 24
    ATTRIBUTE = 25
    INCLUDE = 26
    TRUE = 27
    FALSE = 28


Token = ty.NamedTuple(
    "Token", [("type", TokenType), ("index", int), ("length", int), ("document", int)]
)


def tokenize(data: str, document: int) -> ty.Iterator[Token]:
    cur: int = 0
    end: int = 0
    ops: ty.Dict[str, TokenType] = {
        ":": TokenType.COLON,
        ";": TokenType.SEMICOLON,
        ",": TokenType.COMMA,
        "=": TokenType.EQUAL,
        "{": TokenType.LBRACE,
        "}": TokenType.RBRACE,
        "[": TokenType.LBRACKET,
        "]": TokenType.RBRACKET,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    # Scalar type names are plain identifiers, they are resolved by annotate
    keywords: ty.Dict[str, TokenType] = {
        "namespace": TokenType.NAMESPACE,
        "table": TokenType.TABLE,
        "struct": TokenType.STRUCT,
        "enum": TokenType.ENUM,
        "union": TokenType.UNION,
        "root_type": TokenType.ROOT_TYPE,
        "file_identifier": TokenType.FILE_IDENTIFIER,
        "file_extension": TokenType.FILE_EXTENSION,
        "attribute": TokenType.ATTRIBUTE,
        "include": TokenType.INCLUDE,
        "true": TokenType.TRUE,
        "false": TokenType.FALSE,
    }

    while cur < len(data):
        if data[cur] in " \t\n\r":
            cur += 1
            continue

        if data[cur] in ops:
            yield Token(ops[data[cur]], cur, 1, document)
            cur += 1
            continue

        if data[cur : cur + 3] == "///":
            start = cur
            while True:
                while cur < len(data) and data[cur] != "\n":
                    cur += 1
                end = cur
                while end < len(data) and data[end] in " \t\r\n":
                    end += 1
                if data[end : end + 3] != "///":
                    break
                cur = end
            yield Token(TokenType.DOCCOMMENT, start, cur - start, document)
            continue

        if data[cur : cur + 2] == "//":
            while cur < len(data) and data[cur] != "\n":
                cur += 1
            continue

        if data[cur : cur + 2] == "/*":
            start = cur
            cur += 2
            while cur < len(data) and data[cur : cur + 2] != "*/":
                cur += 1
            if data[cur : cur + 2] == "*/":
                cur += 2
            else:
                yield Token(TokenType.BAD, start, cur - start, document)
            continue

        if data[cur] == '"':
            start = cur
            cur += 1
            while cur < len(data) and data[cur] not in '"\n':
                if data[cur] == "\\":
                    cur += 1
                cur += 1
            if cur < len(data) and data[cur] == '"':
                cur += 1
                yield Token(TokenType.STRING, start, cur - start, document)
            else:
                yield Token(TokenType.BAD, start, cur - start, document)
            continue

        if data[cur].isalpha() or data[cur] == "_":
            end = cur + 1
            while end < len(data) and (data[end] == "_" or data[end].isalnum()):
                end += 1
            type: TokenType = TokenType.IDENTIFIER
            if data[cur:end] in keywords:
                type = keywords[data[cur:end]]
            yield Token(type, cur, end - cur, document)
            cur = end
            continue

        if data[cur] in "+-" or data[cur] in "0123456789" or (
            data[cur] == "." and data[cur + 1 : cur + 2].isdigit()
        ):
            end = cur
            if data[end] in "+-":
                end += 1
            if end < len(data) and data[end].isalpha():
                # Signed nan and inf
                while end < len(data) and data[end].isalpha():
                    end += 1
            elif data[end : end + 2] in ("0x", "0X"):
                end += 2
                while end < len(data) and data[end] in "0123456789abcdefABCDEF":
                    end += 1
            else:
                while end < len(data) and data[end] in "0123456789":
                    end += 1
                if end < len(data) and data[end] == ".":
                    end += 1
                    while end < len(data) and data[end] in "0123456789":
                        end += 1
                if end < len(data) and data[end] in "eE":
                    end += 1
                    if end < len(data) and data[end] in "+-":
                        end += 1
                    while end < len(data) and data[end] in "0123456789":
                        end += 1
            yield Token(TokenType.NUMBER, cur, end - cur, document)
            cur = end
            continue

        if data[cur] == ".":
            yield Token(TokenType.DOT, cur, 1, document)
            cur += 1
            continue

        yield Token(TokenType.BAD, cur, 1, document)
        cur += 1
    yield Token(TokenType.EOF, cur, 0, document)
