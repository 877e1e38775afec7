from __future__ import annotations
import os
from typing import Dict, List, Optional, Sequence

import structlog

from .config import DEFAULT_CONFIG, load_rules
from .errors import FilesystemAccessError
from .fs import FileSystem, LocalFileSystem
from .models import Issue, Rule

log = structlog.get_logger("hyva_compat.detector")


def file_extension(path: str) -> str:
    _, ext = os.path.splitext(path.rstrip("/"))
    return ext[1:].lower()


class IncompatibilityDetector:
    """Tests a single file against the rule set of its category.

    Matching is line based and additive: every rule is tried on every line,
    so one line can yield several issues, but a rule reports a line once.
    """

    def __init__(
        self,
        rules: Optional[Sequence[Rule]] = None,
        fs: Optional[FileSystem] = None,
        extensions: Optional[Dict[str, str]] = None,
    ):
        if rules is None:
            rules = load_rules(DEFAULT_CONFIG)
        self.fs = fs or LocalFileSystem()
        self.extensions = dict(extensions or DEFAULT_CONFIG["extensions"])
        self._by_category: Dict[str, List[Rule]] = {}
        for rule in rules:
            self._by_category.setdefault(rule.category, []).append(rule)

    def category_for(self, path: str) -> Optional[str]:
        return self.extensions.get(file_extension(path))

    def rules_for(self, category: Optional[str]) -> List[Rule]:
        return self._by_category.get(category or "", [])

    def detect_in_file(self, path: str) -> List[Issue]:
        if not self.fs.exists(path):
            return []
        rules = self.rules_for(self.category_for(path))
        if not rules:
            return []
        try:
            text = self.fs.read_text(path)
        except FilesystemAccessError as e:
            log.debug("detector.file_unreadable", path=path, error=str(e))
            return []
        return self.detect_in_text(text, rules)

    def detect_in_text(self, text: str, rules: Sequence[Rule]) -> List[Issue]:
        lines = text.split("\n")
        issues: List[Issue] = []
        for rule in rules:
            for idx, line in enumerate(lines):
                if rule.matches(line):
                    issues.append(
                        Issue(description=rule.description, severity=rule.severity, line=idx + 1, rule_id=rule.id)
                    )
        return issues
