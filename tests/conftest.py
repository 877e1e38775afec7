"""Shared pytest fixtures: build Magento-style module trees on disk."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from hyva_compat.checker import CompatibilityChecker
from hyva_compat.detector import IncompatibilityDetector
from hyva_compat.scanner import ModuleScanner

AMD_WITH_AJAX = "define(['jquery'], function ($) { $.ajax({url: '/rest/V1/cart'}); });\n"


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


def make_module(base: Path, name: str, files: dict[str, str] | None = None, manifest: dict | None = None) -> Path:
    root = base / name
    root.mkdir(parents=True, exist_ok=True)
    write_tree(root, files or {})
    if manifest is not None:
        (root / "composer.json").write_text(json.dumps(manifest), encoding="utf-8")
    return root


@pytest.fixture
def detector():
    return IncompatibilityDetector()


@pytest.fixture
def scanner():
    return ModuleScanner()


@pytest.fixture
def checker():
    return CompatibilityChecker()


@pytest.fixture
def mods(tmp_path):
    path = tmp_path / "mods"
    path.mkdir()
    return path
