from __future__ import annotations
import os, sys
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .checker import CompatibilityChecker
from .models import Report
from .severity import severity_symbol

RECOMMENDATIONS = [
    "Check if Hyvä compatibility packages exist for incompatible modules",
    "Review https://hyva.io/compatibility for known solutions",
    "Consider refactoring RequireJS/Knockout code to Alpine.js",
    "Contact module vendors for Hyvä-compatible versions",
]


def _env() -> Environment:
    tmpl_dir = os.path.join(os.path.dirname(__file__), "templates")
    env = Environment(
        loader=FileSystemLoader(tmpl_dir),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["symbol"] = severity_symbol
    return env


def build_context(
    report: Report, checker: CompatibilityChecker, show_all: bool = False, detailed: bool = False
) -> Dict[str, Any]:
    rows = checker.format_results_for_display(report, show_all)
    details: List[Dict[str, Any]] = []
    if detailed and report.has_incompatibilities:
        for name, module in report.modules.items():
            if module.clean:
                continue
            details.append({"module": name, "files": checker.get_detailed_issues(name, module)})
    widths = [len(h) for h in ("Module", "Status", "Issues")]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    return {
        "rows": rows,
        "widths": widths,
        "details": details,
        "summary": report.summary,
        "has_incompatibilities": report.has_incompatibilities,
        "cancelled": report.cancelled,
        "recommendations": RECOMMENDATIONS,
    }


def render_console(report: Report, checker: CompatibilityChecker, show_all: bool = False, detailed: bool = False) -> str:
    tmpl = _env().get_template("console.txt.j2")
    return tmpl.render(**build_context(report, checker, show_all, detailed))


def render_markdown(report: Report, checker: CompatibilityChecker, project_root: str, detailed: bool = True) -> str:
    tmpl = _env().get_template("report.md.j2")
    md = tmpl.render(**build_context(report, checker, show_all=True, detailed=detailed))
    path = os.path.join(project_root, "HYVA_COMPATIBILITY.md")
    with open(path, "w", encoding="utf-8") as f:
        f.write(md)
    print(f"Wrote {path}", file=sys.stderr)
    return path
