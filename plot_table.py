#!/usr/bin/env python3
"""
Summarize and plot a solutions file.

This script reads the records written by `wolfy.py`, prints a short summary
(one line per record with the counting lower bound), and saves two plots:
- Heatmap of t(n, d) over the records, or over the whole propagated table
  with `--propagate`.
- t(n, d) against n for a few values of d, next to the counting bound
  ceil(log2 C(n, d)) that no design can beat.
"""

from __future__ import annotations

import argparse
import math
from pathlib import Path
from typing import Dict, Iterable, List, Sequence, Tuple

import matplotlib.pyplot as plt

from propagation import build_table
from solution_file import DEFAULT_FILE, read_solutions
from table import ND


def counting_bound(n: int, d: int) -> int:
    """Outcomes must tell apart all C(n, d) arrangements."""
    arrangements = math.comb(n, d)
    return (arrangements - 1).bit_length()


def load_values(path: Path, propagate: bool, max_n: int) -> Dict[ND, Tuple[int, bool]]:
    records = read_solutions(path)
    if not propagate:
        return {key: (s.t, s.guaranteed_best) for key, s in records}
    table, _ = build_table(records, max_n)
    return {
        key: (s.t, s.guaranteed_best)
        for key, s in table.items()
        if key.n <= max_n and 2 <= key.d < key.n
    }


def print_summary(values: Dict[ND, Tuple[int, bool]]) -> None:
    if not values:
        print("No records found.")
        return
    proved = sum(1 for _, gb in values.values() if gb)
    print(f"Loaded {len(values)} entries; {proved} guaranteed best.")
    print(f"{'n':>4} {'d':>3} {'t':>4} {'bound':>6}  {'best':>4}")
    print("-" * 28)
    for key in sorted(values, key=ND.sort_key):
        t, gb = values[key]
        status = "yes" if gb else "?"
        print(f"{key.n:>4} {key.d:>3} {t:>4} {counting_bound(key.n, key.d):>6}  {status:>4}")


def open_axes(figsize: Tuple[float, float]) -> Tuple[plt.Figure, plt.Axes]:
    """New figure with the open-box look used by every plot here."""
    fig, ax = plt.subplots(figsize=figsize)
    for side in ("top", "right"):
        ax.spines[side].set_visible(False)
    return fig, ax


def write_figure(fig: plt.Figure, stem: Path, formats: Iterable[str]) -> List[Path]:
    """Write `fig` once per format next to `stem` and close it."""
    stem.parent.mkdir(parents=True, exist_ok=True)
    written = [stem.with_suffix(f".{fmt}") for fmt in formats]
    for path in written:
        fig.savefig(path, bbox_inches="tight", dpi=150)
    plt.close(fig)
    print(f"[plot] wrote {', '.join(str(p) for p in written)}")
    return written


def plot_heatmap(
    values: Dict[ND, Tuple[int, bool]], out_dir: Path, formats: Iterable[str]
) -> None:
    max_n = max(k.n for k in values)
    max_d = max(k.d for k in values)
    grid: List[List[float]] = [
        [math.nan] * (max_n + 1) for _ in range(max_d + 1)
    ]
    for key, (t, _) in values.items():
        grid[key.d][key.n] = t

    fig, ax = open_axes((12, 5))
    image = ax.imshow(grid, origin="lower", aspect="auto", cmap="viridis")
    proved = [(k.n, k.d) for k, (_, gb) in values.items() if gb]
    if proved:
        ax.scatter(
            [n for n, _ in proved],
            [d for _, d in proved],
            marker=".",
            s=12,
            color="white",
            label="Guaranteed best",
        )
        ax.legend(loc="upper left", fontsize="small")
    fig.colorbar(image, ax=ax, label="t(n, d)")
    ax.set_xlabel("n", fontsize=11)
    ax.set_ylabel("d", fontsize=11)
    ax.set_title("Best known number of tests", fontsize=13, fontweight="bold")
    write_figure(fig, out_dir / "heatmap", formats)


def plot_against_bound(
    values: Dict[ND, Tuple[int, bool]],
    ds: Sequence[int],
    out_dir: Path,
    formats: Iterable[str],
) -> None:
    fig, ax = open_axes((10, 6))
    colors = ["#2a9d8f", "#e76f51", "#264653", "#f4a261", "#8d99ae"]
    for idx, d in enumerate(ds):
        keys = sorted((k for k in values if k.d == d), key=lambda k: k.n)
        if not keys:
            continue
        color = colors[idx % len(colors)]
        ns = [k.n for k in keys]
        ax.plot(
            ns,
            [values[k][0] for k in keys],
            marker="o",
            markersize=3,
            color=color,
            label=f"d={d}",
        )
        ax.plot(
            ns,
            [counting_bound(k.n, d) for k in keys],
            linestyle="--",
            linewidth=1.0,
            color=color,
            alpha=0.6,
        )
    ax.set_xlabel("n", fontsize=11)
    ax.set_ylabel("tests", fontsize=11)
    ax.set_title(
        "Best known t(n, d) vs. counting bound (dashed)",
        fontsize=13,
        fontweight="bold",
    )
    ax.grid(True, linestyle="--", alpha=0.4)
    ax.legend(loc="upper left", frameon=True, framealpha=0.9)
    write_figure(fig, out_dir / "versus_bound", formats)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--file",
        type=Path,
        default=DEFAULT_FILE,
        help="Solutions file to read.",
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("plots"),
        help="Where to save generated plots.",
    )
    parser.add_argument(
        "--formats",
        nargs="+",
        default=["png"],
        help="Image formats to save (passed to matplotlib).",
    )
    parser.add_argument(
        "--propagate",
        action="store_true",
        help="Plot the propagated table instead of the raw records.",
    )
    parser.add_argument(
        "--max-n",
        type=int,
        default=60,
        help="Largest n shown when --propagate is set.",
    )
    parser.add_argument(
        "--d-values",
        type=int,
        nargs="+",
        default=[2, 3, 4],
        help="Values of d for the comparison plot.",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Display plots interactively after saving.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    values = load_values(args.file, args.propagate, args.max_n)
    print_summary(values)
    if not values:
        return

    plot_heatmap(values, args.out_dir, args.formats)
    plot_against_bound(values, args.d_values, args.out_dir, args.formats)

    if args.show:
        plt.show()


if __name__ == "__main__":
    main()
