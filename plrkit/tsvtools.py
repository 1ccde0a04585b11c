"""Drop the label column from a tab-separated time-series file."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable, Iterator

__all__ = ["strip_first_column", "convert_file", "main"]

DEFAULT_SOURCE = "../data/UCRArchive_2018/CricketY/CricketY_TRAIN.tsv"
DEFAULT_DESTINATION = "CricketY_output.txt"


def _fields(line: str) -> list[str]:
    fields = line.split("\t")
    # A trailing separator does not start another field.
    if fields[-1] == "":
        fields.pop()
    return fields


def strip_first_column(lines: Iterable[str]) -> Iterator[str]:
    """Yield each line without its first field; lines of one field are dropped."""
    for line in lines:
        fields = _fields(line.removesuffix("\n"))
        if len(fields) > 1:
            yield "\t".join(fields[1:])


def convert_file(source: str | os.PathLike[str], destination: str | os.PathLike[str]) -> int:
    """Write ``source`` without its first column to ``destination``.

    Returns the number of rows written.
    """
    count = 0
    with open(source, encoding="utf-8", errors="surrogateescape", newline="\n") as infile:
        with open(
            destination, "w", encoding="utf-8", errors="surrogateescape", newline="\n"
        ) as outfile:
            for row in strip_first_column(infile):
                outfile.write(row + "\n")
                count += 1
    return count


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="plrkit-tsv", description="Remove the first column of a TSV file."
    )
    parser.add_argument("source", nargs="?", default=DEFAULT_SOURCE)
    parser.add_argument("destination", nargs="?", default=DEFAULT_DESTINATION)
    args = parser.parse_args(argv)
    try:
        convert_file(args.source, args.destination)
    except OSError as exc:
        which = "input" if exc.filename == args.source else "output"
        print(f"Error opening {which} file!", file=sys.stderr)
        return 1
    return 0