import keyword
import typing as ty

pythonKeywords: ty.Set[str] = set(keyword.kwlist) | {
    "print",
    "exec",
    "self",
    "builder",
    "cls",
    "init",
    "get_root_as",
}

swiftKeywords: ty.Set[str] = {
    "associatedtype",
    "class",
    "deinit",
    "enum",
    "extension",
    "fileprivate",
    "func",
    "import",
    "init",
    "inout",
    "internal",
    "let",
    "open",
    "operator",
    "private",
    "protocol",
    "public",
    "rethrows",
    "static",
    "struct",
    "subscript",
    "typealias",
    "var",
    "break",
    "case",
    "continue",
    "default",
    "defer",
    "do",
    "else",
    "fallthrough",
    "for",
    "guard",
    "if",
    "in",
    "repeat",
    "return",
    "switch",
    "where",
    "while",
    "as",
    "Any",
    "catch",
    "false",
    "is",
    "nil",
    "super",
    "self",
    "Self",
    "throw",
    "throws",
    "true",
    "try",
    "Type",
    "Protocol",
}

# Names the generated swift code declares itself
swiftReserved: ty.Set[str] = {"builder", "data", "tablePosition"}


def escape(target: str, name: str) -> str:
    """Make a schema name usable as an identifier in the given target"""
    if target == "py":
        return name + "_" if name in pythonKeywords else name
    elif target == "swift":
        if name in swiftReserved:
            return name + "_"
        return "`%s`" % name if name in swiftKeywords else name
    else:
        raise ValueError("Unknown target %s" % target)
