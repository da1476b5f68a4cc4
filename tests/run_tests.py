#!/usr/bin/env python
"""
Test runner usable from any working directory

    python tests/run_tests.py              # everything
    python tests/run_tests.py services     # one suite: api, crud or services
    python tests/run_tests.py -k warmup -x # any other arguments go to pytest
"""
import os
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
SUITES = ("api", "crud", "services")


def build_args(argv: list) -> list:
    targets = [f"tests/{name}" for name in argv if name in SUITES]
    passthrough = [arg for arg in argv if arg not in SUITES]
    return (targets or ["tests"]) + ["-v", "--tb=short"] + passthrough


def main() -> int:
    os.chdir(TESTS_DIR.parent)
    args = build_args(sys.argv[1:])
    print(f"pytest {' '.join(args)}  ({sys.executable})")
    return int(pytest.main(args))


if __name__ == "__main__":
    sys.exit(main())
