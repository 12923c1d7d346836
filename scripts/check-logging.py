#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""Enforce the dual-logger convention in src/edge_replica.

Library modules must fetch loggers through ``get_detail_logger`` and
``get_status_logger`` and must not print. Only ``logging_config.py`` may call
``logging.getLogger`` directly, and only ``cli.py`` may write to stdout.

Usage:
    python scripts/check-logging.py

Exit code:
    0: All checks pass
    1: Violations found
"""

import ast
import sys
from pathlib import Path

PACKAGE_DIR = Path("src") / "edge_replica"
GET_LOGGER_ALLOWED = {"logging_config.py"}
PRINT_ALLOWED = {"cli.py"}


def find_violations(path: Path) -> list[str]:
    """Return one message per offending call in ``path``."""
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    violations = []

    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if (
            isinstance(func, ast.Attribute)
            and func.attr == "getLogger"
            and path.name not in GET_LOGGER_ALLOWED
        ):
            violations.append(
                f"{path}:{node.lineno}: use get_detail_logger()/get_status_logger()"
            )
        elif (
            isinstance(func, ast.Name)
            and func.id == "print"
            and path.name not in PRINT_ALLOWED
        ):
            violations.append(f"{path}:{node.lineno}: log instead of print()")

    return violations


def main() -> int:
    if not PACKAGE_DIR.exists():
        print(f"ERROR: {PACKAGE_DIR} not found. Run this script from the project root.")
        return 1

    violations = []
    for path in sorted(PACKAGE_DIR.rglob("*.py")):
        violations.extend(find_violations(path))

    if violations:
        print("❌ LOGGING VIOLATIONS FOUND:")
        for violation in violations:
            print(f"  {violation}")
        return 1

    print("✅ All logging checks passed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
