"""Command line: assemble a program and run it through the pipeline."""

from __future__ import annotations

import argparse
import sys

from rvsim.instruction import assemble_line
from rvsim.pipeline import Pipeline
from rvsim.text import AssemblyError, read_program, write_binary


def main(argv: list[str] | None = None) -> int:
    """Assemble the source file, print the encodings, then simulate and report."""
    parser = argparse.ArgumentParser(
        prog="rvsim", description="Assemble a program and run it on a pipelined CPU."
    )
    parser.add_argument("source", nargs="?", default="assemblyCode.s",
                        help="assembly file to read")
    parser.add_argument("-o", "--output", help="also write the encoded words to this file")
    args = parser.parse_args(argv)

    try:
        lines = read_program(args.source)
    except OSError as exc:
        print(f"cannot read {args.source}: {exc.strerror}", file=sys.stderr)
        return 1

    binary = []
    for line in lines:
        try:
            word = assemble_line(line)
        except AssemblyError as exc:
            print(exc, file=sys.stderr)
            return 1
        print(word)
        binary.append(word)

    if args.output:
        write_binary(args.output, binary)

    print("\nCode Assembled")
    pipeline = Pipeline(binary)
    cycles = pipeline.run()
    print(f"Number of cycles -> {cycles}")
    print(pipeline.report(), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())