# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
from typing import List


def cescape(v: bytes) -> str:
    """Escape bytes for use inside a double quoted string literal"""
    ans = []
    cmap = {0: "\\0", 34: '\\"', 92: "\\\\", 9: "\\t", 10: "\\n", 13: "\\r"}
    for c in v:
        if c in cmap:
            ans.append(cmap[c])
        elif 32 <= c <= 126:
            ans.append(chr(c))
        else:
            ans.append("\\x%02x" % c)
    return "".join(ans)


def ucamel(n: str) -> str:
    """Convert a string in snake or camel case to upper camel case"""
    return "".join(p[0].upper() + p[1:] for p in n.split("_") if p)


def lcamel(n: str) -> str:
    """Convert a string in snake or camel case to lower camel case"""
    u = ucamel(n)
    return u[0:1].lower() + u[1:]


def snake(n: str) -> str:
    """Convert a string in upper or lower camel case to snake case"""
    out: List[str] = []
    for c in n:
        if c.isupper() and out and out[-1] != "_":
            out.append("_")
            out.append(c.lower())
        else:
            out.append(c.lower())
    return "".join(out)
