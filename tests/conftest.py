"""Pytest configuration for path setup.

The package lives under ``aoctools/src``.  When pytest is executed as an
installed script, neither the repository root nor that directory is
automatically added to ``sys.path``.  This file makes both available so
tests can import ``aoctools`` and the fakes under ``tests.helpers``
without installing the project.
"""

from __future__ import annotations

import sys
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]

for path in (ROOT, ROOT / "aoctools" / "src"):
    path_str = str(path)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)
