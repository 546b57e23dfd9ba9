#!/usr/bin/env python3
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
# Checkout runs read config/ and write logs/ next to this script.
os.environ.setdefault("DPU_HOME", str(PROJECT_ROOT))

from dpu_login.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
