from .checker import CompatibilityChecker
from .detector import IncompatibilityDetector
from .models import Issue, ModuleInfo, ModuleReport, Report, Rule, ScanResult, Summary
from .scanner import ModuleScanner

__version__ = "0.1.0"

__all__ = [
    "CompatibilityChecker",
    "IncompatibilityDetector",
    "Issue",
    "ModuleInfo",
    "ModuleReport",
    "ModuleScanner",
    "Report",
    "Rule",
    "ScanResult",
    "Summary",
]
