# -*- mode: python; tab-width: 4; indent-tabs-mode: nil; python-indent-offset: 4; coding: utf-8 -*-
"""
Main executable
"""
import argparse
import sys

from . import plan, python_generator, swift_generator

parser = argparse.ArgumentParser(description="Generate flatbuffers bindings from a schema.")
subparsers = parser.add_subparsers(help="Subcommand to run", dest="command")
subparsers.required = True
plan.setup(subparsers)
python_generator.setup(subparsers)
swift_generator.setup(subparsers)


def main() -> None:
    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
