from __future__ import annotations
import copy, os, re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog
import yaml

from .errors import ConfigError
from .models import CATEGORIES, CRITICAL, SEVERITIES, WARNING, Rule

log = structlog.get_logger("hyva_compat.config")

CONFIG_FILE = ".hyva-compat.yml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "rules": [
        {
            "id": "requirejs-define",
            "category": "script",
            "pattern": r"define\s*\(\s*\[",
            "description": "RequireJS define() usage",
            "severity": CRITICAL,
        },
        {
            "id": "requirejs-require",
            "category": "script",
            "pattern": r"require\s*\(\s*\[",
            "description": "RequireJS require() usage",
            "severity": CRITICAL,
        },
        {
            "id": "knockout-observable",
            "category": "script",
            "pattern": r"ko\.observable|ko\.observableArray|ko\.computed",
            "description": "Knockout.js usage",
            "severity": CRITICAL,
        },
        {
            "id": "jquery-ajax",
            "category": "script",
            "pattern": r"\$\.ajax|jQuery\.ajax",
            "description": "jQuery AJAX direct usage",
            "severity": WARNING,
        },
        {
            "id": "magento-requirejs-module",
            "category": "script",
            "pattern": r"""(?:define|require)\s*\(\s*\[[^\]]*["']mage/[^"']*["']""",
            "description": "Magento RequireJS module reference",
            "severity": CRITICAL,
        },
        {
            "id": "ui-component-tag",
            "category": "markup",
            "pattern": r"<uiComponent",
            "description": "UI Component usage",
            "severity": CRITICAL,
        },
        {
            "id": "ui-component-reference",
            "category": "markup",
            "pattern": r'component="uiComponent"',
            "description": "uiComponent reference",
            "severity": CRITICAL,
        },
        {
            "id": "magento-ui-js-component",
            "category": "markup",
            "pattern": r'component="Magento_Ui/js/',
            "description": "Magento UI JS component",
            "severity": CRITICAL,
        },
        {
            "id": "block-removal",
            "category": "markup",
            "pattern": r'<referenceBlock.*remove="true">',
            "description": "Block removal (review for Hyvä compatibility)",
            "severity": WARNING,
        },
        {
            "id": "data-mage-init",
            "category": "template",
            "pattern": r"data-mage-init\s*=",
            "description": "data-mage-init JavaScript initialization",
            "severity": CRITICAL,
        },
        {
            "id": "x-magento-init",
            "category": "template",
            "pattern": r"x-magento-init",
            "description": "x-magento-init JavaScript initialization",
            "severity": CRITICAL,
        },
        {
            "id": "jquery-dom-manipulation",
            "category": "template",
            "pattern": r"\$\(.*\)\..*\(",
            "description": "jQuery DOM manipulation",
            "severity": WARNING,
        },
        {
            "id": "requirejs-template",
            "category": "template",
            "pattern": r"require\s*\(\s*\[",
            "description": "RequireJS in template",
            "severity": CRITICAL,
        },
    ],
    "extra_rules": [],
    "disabled_rules": [],
    "extensions": {"js": "script", "xml": "markup", "phtml": "template"},
    "exclude_dirs": ["Test", "tests", "node_modules", "vendor"],
    "exclude": [],
    "manifest": "composer.json",
    "aware": {"namespace": "hyva-themes/", "compat_marker": "-compat"},
    "filters": {"vendor_segment": "/vendor/", "first_party_prefix": "Magento_"},
    "workers": 1,
}


@dataclass
class Config:
    data: Dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_CONFIG))

    def section(self, key: str) -> Dict[str, Any]:
        return dict(self.data.get(key) or DEFAULT_CONFIG[key])

    def rules(self) -> List[Rule]:
        return load_rules(self.data)


def load_config(project_root: str, path: Optional[str] = None) -> Config:
    # a path given by the caller must exist; the project default is optional
    if path and not os.path.exists(path):
        raise ConfigError(f"{path}: config file not found")
    path = path or os.path.join(project_root, CONFIG_FILE)
    merged = copy.deepcopy(DEFAULT_CONFIG)
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                try:
                    user = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    log.warning("config.invalid_yaml", path=path, error=str(e))
                    user = {}
        except OSError as e:
            raise ConfigError(f"{path}: cannot read config: {e}") from e
        if not isinstance(user, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        for k, v in user.items():
            if isinstance(v, dict) and isinstance(merged.get(k), dict):
                merged[k].update(v)
            else:
                merged[k] = v
        log.debug("config.loaded", path=path, keys=sorted(user))
    return Config(merged)


def load_rules(data: Dict[str, Any]) -> List[Rule]:
    raw = list(data.get("rules") or []) + list(data.get("extra_rules") or [])
    disabled = set(data.get("disabled_rules") or [])
    rules: List[Rule] = []
    seen = set()
    for entry in raw:
        rule = _build_rule(entry)
        if rule.id in seen:
            raise ConfigError(f"duplicate rule id: {rule.id}")
        seen.add(rule.id)
        if rule.id not in disabled:
            rules.append(rule)
    return rules


def _build_rule(entry: Any) -> Rule:
    if not isinstance(entry, dict):
        raise ConfigError(f"rule must be a mapping, got {entry!r}")
    missing = [k for k in ("id", "category", "pattern", "description", "severity") if not entry.get(k)]
    if missing:
        raise ConfigError(f"rule {entry.get('id', '?')}: missing {', '.join(missing)}")
    if entry["category"] not in CATEGORIES:
        raise ConfigError(f"rule {entry['id']}: unknown category {entry['category']!r}")
    if entry["severity"] not in SEVERITIES:
        raise ConfigError(f"rule {entry['id']}: unknown severity {entry['severity']!r}")
    try:
        pattern = re.compile(entry["pattern"])
    except re.error as e:
        raise ConfigError(f"rule {entry['id']}: bad pattern: {e}") from e
    return Rule(
        id=str(entry["id"]),
        category=entry["category"],
        pattern=pattern,
        description=str(entry["description"]),
        severity=entry["severity"],
    )
