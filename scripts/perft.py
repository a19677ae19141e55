#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import time
import os
import sys

# Allow running this script directly via `python scripts/perft.py`
# by adding the repo's `src/` to sys.path.
SRC_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

from chesscore.engine.board import Board, STARTPOS_FEN
from chesscore.engine.perft import divide, perft


def main() -> None:
    parser = argparse.ArgumentParser(description="Run perft on a given FEN and depth")
    parser.add_argument(
        "--fen", type=str, default=STARTPOS_FEN, help="FEN string (default: startpos)"
    )
    parser.add_argument("--depth", type=int, default=3, help="Perft depth (default: 3)")
    parser.add_argument(
        "--pseudo", action="store_true", help="Count pseudo-legal moves (no king-safety filter)"
    )
    parser.add_argument("--divide", action="store_true", help="Print per-root-move counts")
    args = parser.parse_args()

    board = Board.from_fen(args.fen)
    legal = not args.pseudo
    start = time.perf_counter()
    if args.divide:
        counts = divide(board, args.depth, legal=legal)
        for move, n in counts.items():
            print(f"{move}: {n}")
        nodes = sum(counts.values())
    else:
        nodes = perft(board, args.depth, legal=legal)
    dt = time.perf_counter() - start
    print(f"nodes={nodes} depth={args.depth} time_ms={int(dt*1000)} nps={int(nodes/max(dt,1e-9))}")


if __name__ == "__main__":
    main()
