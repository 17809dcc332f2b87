#!/usr/bin/env python3
"""Generate the static dashboard site.

Usage:
  python scripts/build_static.py                          # all pages from Firestore
  python scripts/build_static.py --test-mode              # 8-page sample
  python scripts/build_static.py --fixture snapshot.json  # offline, from a JSON dump
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from ai_tools_dashboard.site.cli import main

if __name__ == "__main__":
    sys.exit(main())
