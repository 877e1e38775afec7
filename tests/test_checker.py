"""Tests for the compatibility checker: filtering, aggregation, display views."""

from __future__ import annotations

import threading

from conftest import AMD_WITH_AJAX, make_module
from hyva_compat.checker import CompatibilityChecker
from hyva_compat.models import CRITICAL, WARNING
from hyva_compat.scanner import ModuleScanner

HYVA_AWARE = {"name": "acme/module-bar", "require": {"hyva-themes/magento2-default-theme": "^1.3"}}


def _registry(*roots):
    return {root.name: str(root) for root in roots}


class CancelAfterFirst(ModuleScanner):
    def __init__(self, cancel):
        super().__init__()
        self.cancel = cancel

    def scan_module(self, module_path, cancel=None):
        result = super().scan_module(module_path, cancel=cancel)
        self.cancel.set()
        return result


# ── check ────────────────────────────────────────────────────────────────


class TestCheck:
    def test_end_to_end_single_module(self, checker, mods):
        root = make_module(mods, "Acme_Foo", {"view/frontend/web/js/x.js": AMD_WITH_AJAX})
        report = checker.check({"Acme_Foo": str(root)})

        module = report.modules["Acme_Foo"]
        issues = module.scan_result.files["view/frontend/web/js/x.js"]
        assert sorted((it.severity, it.line) for it in issues) == [(CRITICAL, 1), (WARNING, 1)]
        assert module.compatible is False
        assert module.has_warnings is True
        s = report.summary
        assert (s.total, s.incompatible, s.critical_issues, s.warning_issues) == (1, 1, 1, 1)
        assert s.compatible == 0
        assert report.has_incompatibilities is True

    def test_clean_module(self, checker, mods):
        root = make_module(mods, "Acme_Clean", {"view/frontend/web/js/a.js": "export default {};\n"})
        report = checker.check(_registry(root))
        assert report.summary.compatible == 1
        assert report.summary.incompatible == 0
        assert report.has_incompatibilities is False
        assert report.modules["Acme_Clean"].compatible is True

    def test_compatible_with_warnings(self, checker, mods):
        root = make_module(mods, "Acme_Warn", {"web/js/a.js": "$.ajax({});\n"})
        report = checker.check(_registry(root))
        module = report.modules["Acme_Warn"]
        assert module.compatible is True
        assert module.has_warnings is True
        # warnings keep a module out of the "compatible" counter
        assert report.summary.incompatible == 1
        assert report.summary.critical_issues == 0
        assert report.summary.warning_issues == 1
        assert report.has_incompatibilities is True

    def test_missing_module_path_counts_as_clean(self, checker, mods):
        report = checker.check({"Acme_Gone": str(mods / "Acme_Gone")})
        assert report.summary.total == 1
        assert report.summary.compatible == 1
        assert report.modules["Acme_Gone"].module_info.name == "Unknown"

    def test_summary_matches_module_totals(self, checker, mods):
        a = make_module(mods, "Acme_A", {"a.js": AMD_WITH_AJAX, "b.phtml": "<div data-mage-init='{}'>\n"})
        b = make_module(mods, "Acme_B", {"l.xml": '<referenceBlock name="x" remove="true">\n'}, manifest=HYVA_AWARE)
        c = make_module(mods, "Acme_C", {"c.js": "// nothing\n"})
        report = checker.check(_registry(a, b, c))
        s = report.summary
        assert s.total == 3
        assert s.compatible + s.incompatible == s.total
        assert s.critical_issues == sum(m.scan_result.critical_issues for m in report.modules.values()) == 2
        assert s.warning_issues == sum(m.scan_result.warning_issues for m in report.modules.values()) == 2
        assert s.aware == 1
        for m in report.modules.values():
            assert m.scan_result.warning_issues >= 0

    def test_modules_ordered_by_name(self, checker, mods):
        roots = [make_module(mods, name) for name in ("Zeta_Mod", "Acme_Mod", "Mid_Mod")]
        report = checker.check(_registry(*roots))
        assert list(report.modules) == ["Acme_Mod", "Mid_Mod", "Zeta_Mod"]

    def test_idempotent(self, checker, mods):
        a = make_module(mods, "Acme_A", {"a.js": AMD_WITH_AJAX})
        b = make_module(mods, "Acme_B", {"b.phtml": "$('.x').toggle();\n"}, manifest=HYVA_AWARE)
        registry = _registry(a, b)
        first = checker.check(registry)
        second = checker.check(registry)
        assert first.summary == second.summary
        assert first.to_dict() == second.to_dict()

    def test_parallel_matches_sequential(self, checker, mods):
        roots = [
            make_module(mods, f"Acme_M{i}", {"web/js/a.js": AMD_WITH_AJAX if i % 2 else "// ok\n"})
            for i in range(8)
        ]
        registry = _registry(*roots)
        assert checker.check(registry, workers=4).to_dict() == checker.check(registry).to_dict()


class TestFilters:
    def test_exclude_vendor(self, checker, tmp_path):
        vendored = make_module(tmp_path / "vendor" / "acme", "module-foo", {"a.js": "define([\n"})
        local = make_module(tmp_path / "app" / "code" / "Acme", "Bar")
        registry = {"Acme_Foo": str(vendored), "Acme_Bar": str(local)}

        report = checker.check(registry, exclude_vendor=True)
        assert report.summary.total == 1
        assert list(report.modules) == ["Acme_Bar"]

        report = checker.check(registry, exclude_vendor=False)
        assert report.summary.total == 2
        assert report.summary.critical_issues == 1

    def test_third_party_only(self, checker, mods):
        core = make_module(mods, "Magento_Catalog", {"a.js": "define([\n"})
        third = make_module(mods, "Acme_Foo")
        report = checker.check(_registry(core, third), third_party_only=True)
        assert list(report.modules) == ["Acme_Foo"]
        assert report.summary.total == 1
        assert report.summary.critical_issues == 0

    def test_third_party_only_keeps_vendor_paths(self, checker, tmp_path):
        vendored = make_module(tmp_path / "vendor" / "acme", "module-foo")
        report = checker.check({"Acme_Foo": str(vendored)}, third_party_only=True, exclude_vendor=False)
        assert report.summary.total == 1

    def test_vendor_segment_must_be_a_directory(self, checker, tmp_path):
        root = make_module(tmp_path / "vendors_backup", "Acme_Foo")
        assert checker.check({"Acme_Foo": str(root)}, exclude_vendor=True).summary.total == 1


class TestCancellation:
    def test_cancelled_before_start(self, checker, mods):
        root = make_module(mods, "Acme_Foo", {"a.js": "define([\n"})
        cancel = threading.Event()
        cancel.set()
        report = checker.check(_registry(root), cancel=cancel)
        assert report.cancelled is True
        assert report.modules == {}
        assert report.summary.total == 0

    def test_partial_report_has_only_completed_modules(self, mods):
        roots = [make_module(mods, name, {"a.js": "define([\n"}) for name in ("Acme_A", "Acme_B", "Acme_C")]
        cancel = threading.Event()
        checker = CompatibilityChecker(scanner=CancelAfterFirst(cancel))
        report = checker.check(_registry(*roots), cancel=cancel)
        assert report.cancelled is True
        assert list(report.modules) == ["Acme_A"]
        assert report.summary.total == 1
        assert report.summary.critical_issues == 1

    def test_not_cancelled(self, checker, mods):
        root = make_module(mods, "Acme_Foo")
        assert checker.check(_registry(root), cancel=threading.Event()).cancelled is False


# ── display views ────────────────────────────────────────────────────────


class TestDisplay:
    def _report(self, checker, mods):
        roots = [
            make_module(mods, "Acme_Bad", {"a.js": AMD_WITH_AJAX}),
            make_module(mods, "Acme_Clean", {"a.js": "// ok\n"}),
            make_module(mods, "Acme_Warn", {"a.js": "$.ajax({});\n"}),
            make_module(mods, "Acme_Aware", {"a.js": "define([\n"}, manifest=HYVA_AWARE),
        ]
        return checker.check(_registry(*roots))

    def test_hides_clean_modules(self, checker, mods):
        rows = checker.format_results_for_display(self._report(checker, mods))
        assert [r[0] for r in rows] == ["Acme_Aware", "Acme_Bad", "Acme_Warn"]

    def test_show_all(self, checker, mods):
        rows = checker.format_results_for_display(self._report(checker, mods), show_all=True)
        assert rows == [
            ["Acme_Aware", "✓ Hyvä-Aware", "1 critical"],
            ["Acme_Bad", "✗ Incompatible", "1 critical, 1 warning(s)"],
            ["Acme_Clean", "✓ Compatible", "None"],
            ["Acme_Warn", "⚠ Warnings", "1 warning(s)"],
        ]

    def test_detailed_issues_projection(self, checker, mods):
        report = self._report(checker, mods)
        module = report.modules["Acme_Bad"]
        details = checker.get_detailed_issues("Acme_Bad", module)
        assert [d["file"] for d in details] == ["a.js"]
        assert details[0]["issues"] == module.scan_result.files["a.js"]
        assert checker.get_detailed_issues("Acme_Clean", report.modules["Acme_Clean"]) == []

    def test_report_is_json_serialisable(self, checker, mods):
        import json

        data = json.loads(json.dumps(self._report(checker, mods).to_dict()))
        assert data["summary"]["total"] == 4
        bad = data["modules"]["Acme_Bad"]["scan_result"]["files"]["a.js"]
        assert {i["rule_id"] for i in bad} == {"requirejs-define", "jquery-ajax"}
