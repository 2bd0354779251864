#!/usr/bin/env python3
"""Run ruff, pyright and (optionally) the offscreen test suite; exit non-zero on the first failure."""

from __future__ import annotations

import argparse
import subprocess
import sys
from pathlib import Path

_SCRIPTS = Path(__file__).resolve().parent


def run(cmd: list[str]) -> int:
    print("=>", " ".join(cmd))
    return subprocess.run(cmd, check=False).returncode


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--no-tests", action="store_true", help="Skip running pytest")
    parser.add_argument("--fix", action="store_true", help="Let ruff apply safe fixes")
    args = parser.parse_args()

    steps: list[tuple[str, list[str]]] = [
        ("ruff", [sys.executable, "-m", "ruff", "check", *(["--fix"] if args.fix else []), "."]),
        ("pyright", [sys.executable, "-m", "pyright"]),
    ]
    if not args.no_tests:
        steps.append(("pytest", [sys.executable, str(_SCRIPTS / "run_tests_offscreen.py")]))

    for name, cmd in steps:
        rc = run(cmd)
        if rc != 0:
            print(f"{name} failed")
            return rc

    print("All checks passed")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
