#!/usr/bin/env python3
"""Run pytest in Qt offscreen mode.

The dispatcher tests start a real worker QThread; offscreen mode lets them run
on CI machines without a display.

Usage:
  python scripts/run_tests_offscreen.py [--timeout SECONDS] [--] [pytest args...]

Examples:
  python scripts/run_tests_offscreen.py tests/test_dispatcher.py
  python scripts/run_tests_offscreen.py -- -k encoder -q
"""

from __future__ import annotations

import argparse
import os
import shlex
import subprocess
import sys


def main() -> int:
    p = argparse.ArgumentParser(description="Run pytest with Qt offscreen mode")
    p.add_argument("--timeout", type=int, default=300, help="Maximum seconds to allow the whole pytest run")
    p.add_argument("--verbose", action="store_true", help="Don't use -q (quiet)")
    p.add_argument("pytest_args", nargs=argparse.REMAINDER, help="Additional pytest args")
    args = p.parse_args()

    env = os.environ.copy()
    env.setdefault("QT_QPA_PLATFORM", "offscreen")
    # Keep engine debug logs out of the test output unless asked for.
    env.setdefault("B64_CONVERTER_LOG_LEVEL", "warning")

    cmd = [sys.executable, "-m", "pytest"]
    if not args.verbose:
        cmd += ["-q"]
    cmd += [f"--timeout={min(120, args.timeout)}"]
    cmd += [a for a in args.pytest_args if a != "--"]

    print("Running:", " ".join(shlex.quote(c) for c in cmd))
    try:
        completed = subprocess.run(cmd, env=env, check=False, timeout=args.timeout)
        return completed.returncode
    except subprocess.TimeoutExpired:
        print(f"pytest run timed out after {args.timeout} seconds", file=sys.stderr)
        return 124


if __name__ == "__main__":
    raise SystemExit(main())
