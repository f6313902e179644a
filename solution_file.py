"""Reading and writing the best-known solutions file.

Layout: a free-form preamble (the summary triangle), then records. Each
record is a header line

    N=<n> D=<d> T=<t> guaranteed_best=<0|1>

followed either by t rows of n characters from '.'/'1', or by the packed
column format: the word `emathgroup` and n hex tokens, one per item, where bit
r of a token says whether row r tests that item. Blank lines separate records;
anything else after the first record is an error.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Tuple

from propagation import preserve_from_file
from strategy import Strategy
from table import ND, SolutionTable, summary_triangle

DEFAULT_FILE = Path("wolfy-out.txt")
PACKED_MIN_N = 150
PACKED_TOKEN = "emathgroup"

HEADER_RE = re.compile(r"N=(\d+) D=(\d+) T=(\d+) guaranteed_best=([01])\s*$")
HEX_TOKEN_RE = re.compile(r"[0-9a-fA-F]+")


class SolutionFileError(ValueError):
    """The solution file is malformed."""


def _parse_packed(
    lines: List[str], start: int, n: int, t: int, header_line: int
) -> Tuple[List[str], int]:
    """Decode a packed body starting at `lines[start]`; return (rows, next line)."""
    tokens = lines[start].split()
    if not tokens or tokens[0] != PACKED_TOKEN:
        raise SolutionFileError(f"line {header_line}: expected '{PACKED_TOKEN}'")
    columns: List[int] = []
    pending = tokens[1:]
    j = start
    while True:
        for token in pending:
            if HEX_TOKEN_RE.fullmatch(token) is None:
                raise SolutionFileError(f"line {j + 1}: bad hex token {token!r}")
            bits = int(token, 16)
            if not (0 <= bits < (1 << t)):
                raise SolutionFileError(
                    f"line {j + 1}: packed value {token} does not fit in {t} tests"
                )
            columns.append(bits)
        if len(columns) > n:
            raise SolutionFileError(f"line {j + 1}: more than {n} packed columns")
        if len(columns) == n:
            break
        j += 1
        if j >= len(lines):
            raise SolutionFileError(
                f"line {header_line}: packed record ended after {len(columns)} of {n} columns"
            )
        pending = lines[j].split()
    rows = [
        "".join("1" if (col >> r) & 1 else "." for col in columns) for r in range(t)
    ]
    return rows, j + 1


def parse_solutions(text: str) -> List[Tuple[ND, Strategy]]:
    """Parse records in file order; every strategy is flagged `belongs_in_file`."""
    lines = text.splitlines()
    records: List[Tuple[ND, Strategy]] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.startswith("N="):
            if records and line.strip():
                raise SolutionFileError(
                    f"line {i + 1}: unexpected content after the first record"
                )
            i += 1
            continue
        match = HEADER_RE.match(line)
        if match is None:
            raise SolutionFileError(f"line {i + 1}: malformed header {line!r}")
        n, d, t, gb = (int(g) for g in match.groups())
        if d > n:
            raise SolutionFileError(f"line {i + 1}: D={d} exceeds N={n}")
        body = i + 1
        if body < len(lines) and lines[body].startswith("e"):
            rows, i = _parse_packed(lines, body, n, t, i + 1)
        else:
            rows = lines[body : body + t]
            if len(rows) != t:
                raise SolutionFileError(
                    f"line {i + 1}: expected {t} rows, found {len(rows)}"
                )
            for offset, row in enumerate(rows):
                if len(row) != n or set(row) - {".", "1"}:
                    raise SolutionFileError(
                        f"line {body + offset + 1}: malformed row for N={n}"
                    )
            i = body + t
        strategy = Strategy.from_rows(rows, guaranteed_best=bool(gb), belongs_in_file=True)
        records.append((ND(n, d), strategy))
    return records


def read_solutions(path: Path) -> List[Tuple[ND, Strategy]]:
    return parse_solutions(Path(path).read_text())


def load_known_solutions(path: Path) -> SolutionTable:
    """Read `path` into a table of known solutions.

    Each record goes in over an unproven worst-case placeholder, so duplicate
    records or records no better than the trivial design are rejected.
    """
    table = SolutionTable()
    for key, strategy in read_solutions(path):
        if key in table:
            raise SolutionFileError(f"duplicate record for N={key.n} D={key.d}")
        preserve_from_file(table, key.n, key.d, strategy)
    return table


def render_record(key: ND, strategy: Strategy) -> str:
    if key.n > PACKED_MIN_N:
        return strategy.to_packed_text(key.n, key.d)
    return strategy.to_text(key.n, key.d)


def render_solutions(table: SolutionTable) -> str:
    parts = [summary_triangle(table), "\n\n"]
    for key, strategy in table.items():
        if strategy.belongs_in_file:
            parts.append(render_record(key, strategy))
            parts.append("\n")
    return "".join(parts)


def write_solutions(path: Path, table: SolutionTable) -> None:
    Path(path).write_text(render_solutions(table))
