from __future__ import annotations
import json, os, sys
from typing import Optional

from .models import Report

# Files that mark the root of a Magento installation
ROOT_MARKERS = (os.path.join("app", "etc", "env.php"), os.path.join("app", "etc", "config.php"), os.path.join("bin", "magento"))


def find_project_root(start: str) -> str:
    start = os.path.abspath(start)
    p = start
    while p and p != os.path.dirname(p):
        if any(os.path.exists(os.path.join(p, marker)) for marker in ROOT_MARKERS):
            return p
        p = os.path.dirname(p)
    return start


def write_json(report: Report, dest: Optional[str] = None) -> Optional[str]:
    payload = json.dumps(report.to_dict(), indent=2, ensure_ascii=False)
    if dest is None or dest == "-":
        sys.stdout.write(payload + "\n")
        return None
    with open(dest, "w", encoding="utf-8") as f:
        f.write(payload + "\n")
    print(f"Wrote {dest}", file=sys.stderr)
    return dest
