from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

CRITICAL = "critical"
WARNING = "warning"

SEVERITIES = (CRITICAL, WARNING)
CATEGORIES = ("script", "markup", "template")


@dataclass(frozen=True)
class Rule:
    id: str
    category: str  # script|markup|template
    pattern: re.Pattern
    description: str
    severity: str  # critical|warning

    def matches(self, line: str) -> bool:
        return self.pattern.search(line) is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category,
            "pattern": self.pattern.pattern,
            "description": self.description,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class Issue:
    description: str
    severity: str
    line: int  # 1-based
    rule_id: str

    @property
    def is_critical(self) -> bool:
        return self.severity == CRITICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "severity": self.severity,
            "line": self.line,
            "rule_id": self.rule_id,
        }


@dataclass
class ScanResult:
    files: Dict[str, List[Issue]] = field(default_factory=dict)
    total_issues: int = 0
    critical_issues: int = 0

    @property
    def warning_issues(self) -> int:
        return max(0, self.total_issues - self.critical_issues)

    def add(self, rel_path: str, issues: List[Issue]):
        if not issues:
            return
        self.files[rel_path] = list(issues)
        self.total_issues += len(issues)
        self.critical_issues += sum(1 for it in issues if it.is_critical)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": {p: [it.to_dict() for it in issues] for p, issues in self.files.items()},
            "total_issues": self.total_issues,
            "critical_issues": self.critical_issues,
        }


@dataclass(frozen=True)
class ModuleInfo:
    name: str = "Unknown"
    version: str = "Unknown"
    is_aware: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "version": self.version, "is_aware": self.is_aware}


@dataclass
class ModuleReport:
    path: str
    compatible: bool
    has_warnings: bool
    scan_result: ScanResult
    module_info: ModuleInfo

    @classmethod
    def build(cls, path: str, scan_result: ScanResult, module_info: ModuleInfo) -> "ModuleReport":
        return cls(
            path=path,
            compatible=scan_result.critical_issues == 0,
            has_warnings=scan_result.total_issues > scan_result.critical_issues,
            scan_result=scan_result,
            module_info=module_info,
        )

    @property
    def clean(self) -> bool:
        return self.compatible and not self.has_warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "compatible": self.compatible,
            "has_warnings": self.has_warnings,
            "scan_result": self.scan_result.to_dict(),
            "module_info": self.module_info.to_dict(),
        }


@dataclass
class Summary:
    total: int = 0
    compatible: int = 0
    incompatible: int = 0
    aware: int = 0
    critical_issues: int = 0
    warning_issues: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "compatible": self.compatible,
            "incompatible": self.incompatible,
            "aware": self.aware,
            "critical_issues": self.critical_issues,
            "warning_issues": self.warning_issues,
        }


@dataclass
class Report:
    modules: Dict[str, ModuleReport] = field(default_factory=dict)
    summary: Summary = field(default_factory=Summary)
    has_incompatibilities: bool = False
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modules": {name: m.to_dict() for name, m in self.modules.items()},
            "summary": self.summary.to_dict(),
            "has_incompatibilities": self.has_incompatibilities,
            "cancelled": self.cancelled,
        }
