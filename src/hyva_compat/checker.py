"""Runs the scanner over every registered module and folds the results.

Module scans are independent, so with ``workers > 1`` they run on a thread
pool. Merging into the summary only ever happens in the calling thread and
only uses additions, so the totals do not depend on completion order.
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from threading import Event
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from .config import Config
from .errors import ScanCancelled
from .models import ModuleReport, Report
from .scanner import ModuleScanner
from .severity import issues_label, status_label

log = structlog.get_logger("hyva_compat.checker")


class CompatibilityChecker:
    def __init__(self, scanner: Optional[ModuleScanner] = None, config: Optional[Config] = None):
        cfg = config or Config()
        self.scanner = scanner or ModuleScanner(config=cfg)
        filters = cfg.section("filters")
        self.vendor_segment = filters.get("vendor_segment", "/vendor/")
        self.first_party_prefix = filters.get("first_party_prefix", "Magento_")

    def check(
        self,
        registry: Mapping[str, str],
        show_all: bool = False,
        third_party_only: bool = False,
        exclude_vendor: bool = True,
        *,
        workers: int = 1,
        cancel: Optional[Event] = None,
    ) -> Report:
        report = Report()
        selected = [
            (name, path)
            for name, path in registry.items()
            if self._included(name, path, third_party_only, exclude_vendor)
        ]
        log.info("checker.start", modules=len(registry), selected=len(selected), workers=workers)

        if workers > 1 and len(selected) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                done = list(pool.map(lambda item: self._scan(item[0], item[1], show_all, cancel), selected))
        else:
            done = []
            for name, path in selected:
                done.append(self._scan(name, path, show_all, cancel))

        completed = [pair for pair in done if pair is not None]
        report.cancelled = len(completed) < len(selected)
        for name, module in sorted(completed, key=lambda pair: pair[0]):
            self._merge(report, name, module)

        if report.cancelled:
            log.warning("checker.cancelled", completed=len(completed), selected=len(selected))
        log.info("checker.done", **report.summary.to_dict())
        return report

    def is_vendor_module(self, module_path: str) -> bool:
        return self.vendor_segment in module_path.replace("\\", "/")

    def is_first_party_module(self, module_name: str) -> bool:
        return module_name.startswith(self.first_party_prefix)

    def _included(self, name: str, path: str, third_party_only: bool, exclude_vendor: bool) -> bool:
        if exclude_vendor and self.is_vendor_module(path):
            return False
        if third_party_only and self.is_first_party_module(name):
            return False
        return True

    def _scan(
        self, name: str, path: str, show_all: bool, cancel: Optional[Event]
    ) -> Optional[Tuple[str, ModuleReport]]:
        if cancel is not None and cancel.is_set():
            return None
        try:
            scan_result = self.scanner.scan_module(path, cancel=cancel)
        except ScanCancelled:
            log.debug("checker.module_aborted", module=name)
            return None
        module_info = self.scanner.get_module_info(path)
        module = ModuleReport.build(path, scan_result, module_info)
        emit = log.info if show_all else log.debug
        emit(
            "checker.module_scanned",
            module=name,
            critical=scan_result.critical_issues,
            total=scan_result.total_issues,
        )
        return name, module

    @staticmethod
    def _merge(report: Report, name: str, module: ModuleReport):
        summary = report.summary
        summary.total += 1
        report.modules[name] = module
        if module.clean:
            summary.compatible += 1
        else:
            summary.incompatible += 1
            report.has_incompatibilities = True
        if module.module_info.is_aware:
            summary.aware += 1
        summary.critical_issues += module.scan_result.critical_issues
        summary.warning_issues += module.scan_result.warning_issues

    def format_results_for_display(self, report: Report, show_all: bool = False) -> List[List[str]]:
        rows = []
        for name in sorted(report.modules):
            module = report.modules[name]
            if show_all or not module.compatible or module.has_warnings:
                rows.append([name, status_label(module), issues_label(module.scan_result)])
        return rows

    def get_detailed_issues(self, module_name: str, module: ModuleReport) -> List[Dict[str, Any]]:
        return [{"file": path, "issues": issues} for path, issues in module.scan_result.files.items()]
