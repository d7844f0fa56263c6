# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Drive a target over every definition of a schema and package the output
"""
import concurrent.futures
import io
import os
import sys
import typing as ty

from .annotate import annotate
from .documents import Documents
from .emission import Definition, emit_record
from .error import warning
from .parser import ParseError, Parser
from .schema import ICE, EnumDef, RecordDef, Schema, SchemaError

GeneratorOptions = ty.NamedTuple(
    "GeneratorOptions", [("one_file", bool), ("file_name", str), ("jobs", int)]
)

Output = ty.NamedTuple("Output", [("path", str), ("content", str)])

Printer = ty.Callable[..., None]

BANNER = "THIS FILE IS GENERATED DO NOT EDIT"


class Generator:
    """Base of the target generators, subclasses render enums and records"""

    extension: str = ""

    def __init__(self, schema: Schema, options: GeneratorOptions) -> None:
        self.schema = schema
        self.options = options
        self.warnings: ty.List[str] = []

    def definitions(self) -> ty.List[ty.Union[EnumDef, RecordDef]]:
        ans: ty.List[ty.Union[EnumDef, RecordDef]] = []
        ans.extend(self.schema.enums)
        ans.extend(self.schema.records)
        return ans

    def emit_record(self, record: RecordDef) -> Definition:
        return emit_record(record, self.schema)

    def begin_file(self, o: Printer, units: ty.List[ty.Union[EnumDef, RecordDef]]) -> None:
        raise NotImplementedError()

    def generate_enum(self, o: Printer, node: EnumDef) -> None:
        raise NotImplementedError()

    def generate_record(self, o: Printer, definition: Definition) -> None:
        raise NotImplementedError()

    def render(self, node: ty.Union[EnumDef, RecordDef]) -> ty.Tuple[str, ty.List[str]]:
        out = io.StringIO()

        def o(text: str = "") -> None:
            print(text, file=out)

        if isinstance(node, EnumDef):
            self.generate_enum(o, node)
            return out.getvalue(), []
        elif isinstance(node, RecordDef):
            definition = self.emit_record(node)
            self.generate_record(o, definition)
            return out.getvalue(), definition.warnings
        else:
            raise ICE()

    def header(self, units: ty.List[ty.Union[EnumDef, RecordDef]]) -> str:
        out = io.StringIO()

        def o(text: str = "") -> None:
            print(text, file=out)

        self.begin_file(o, units)
        return out.getvalue()

    def path(self, node: ty.Union[EnumDef, RecordDef]) -> str:
        parts = node.namespace.split(".") if node.namespace else []
        return os.path.join(*parts, "%s.%s" % (node.name, self.extension))

    def extra_outputs(self, outputs: ty.List[Output]) -> ty.List[Output]:
        return []

    def generate(self) -> ty.List[Output]:
        units = self.definitions()
        if self.options.jobs > 1:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.options.jobs
            ) as executor:
                rendered = list(executor.map(self.render, units))
        else:
            rendered = [self.render(u) for u in units]
        self.warnings = [w for _, ws in rendered for w in ws]

        if self.options.one_file:
            outputs = [
                Output(
                    "%s_generated.%s" % (self.options.file_name, self.extension),
                    self.header(units) + "".join(text for text, _ in rendered),
                )
            ]
        else:
            outputs = [
                Output(self.path(u), self.header([u]) + text)
                for u, (text, _) in zip(units, rendered)
            ]
        return outputs + self.extra_outputs(outputs)


def save(outputs: ty.List[Output], directory: str) -> ty.List[str]:
    """Write the outputs below directory, leaving files with unchanged content alone"""
    written: ty.List[str] = []
    for output in outputs:
        path = os.path.join(directory, output.path)
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        if os.path.exists(path):
            with open(path, "r") as f:
                if f.read() == output.content:
                    continue
        with open(path, "w") as f:
            f.write(output.content)
        written.append(path)
    return written


def parse_schema(documents: Documents) -> ty.Optional[Schema]:
    p = Parser(documents)
    try:
        ast = p.parse_document()
    except ParseError as err:
        err.describe(documents)
        return None
    return annotate(documents, ast)


def load_schema(path: str) -> ty.Optional[Schema]:
    documents = Documents()
    documents.read_root(path)
    return parse_schema(documents)


def run_generator(generator: ty.Type[Generator], args) -> int:
    try:
        schema = load_schema(args.schema)
        if schema is None:
            print("Schema is invalid", file=sys.stderr)
            return 1
        file_name = args.file_name or os.path.splitext(os.path.basename(args.schema))[0]
        g = generator(schema, GeneratorOptions(args.one_file, file_name, args.jobs))
        outputs = g.generate()
        for w in g.warnings:
            warning(w)
        save(outputs, args.output)
        return 0
    except (ICE, SchemaError) as err:
        print("Error: %s" % err, file=sys.stderr)
    except OSError as err:
        print("Error: %s" % err, file=sys.stderr)
    return 1


def add_arguments(cmd) -> None:
    cmd.add_argument("schema", help="schema to generate things from")
    cmd.add_argument("output", help="where do we store the output")
    cmd.add_argument(
        "--one-file",
        action="store_true",
        help="put every definition in a single file",
    )
    cmd.add_argument(
        "--file-name",
        default=None,
        help="base name of the single file, defaults to the schema name",
    )
    cmd.add_argument(
        "--jobs", type=int, default=1, help="number of definitions generated at once"
    )
