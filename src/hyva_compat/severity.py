from __future__ import annotations

from .models import CRITICAL, WARNING, ModuleReport, ScanResult

COLORS = {CRITICAL: "red", WARNING: "yellow"}
SYMBOLS = {CRITICAL: "✗", WARNING: "⚠"}


def severity_color(severity: str) -> str:
    return COLORS.get(severity, "white")


def severity_symbol(severity: str) -> str:
    return SYMBOLS.get(severity, "ℹ")


def status_label(module: ModuleReport) -> str:
    if module.module_info.is_aware:
        return "✓ Hyvä-Aware"
    if module.compatible and not module.has_warnings:
        return "✓ Compatible"
    if module.compatible:
        return "⚠ Warnings"
    return "✗ Incompatible"


def issues_label(scan: ScanResult) -> str:
    if scan.total_issues == 0:
        return "None"
    parts = []
    if scan.critical_issues > 0:
        parts.append(f"{scan.critical_issues} critical")
    if scan.warning_issues > 0:
        parts.append(f"{scan.warning_issues} warning(s)")
    return ", ".join(parts)
