import argparse
import sys

from .checker import CompatibilityChecker
from .config import load_config
from .errors import ConfigError, RegistryError
from .log import setup_logging
from .registry import discover_modules, load_registry
from .renderer import render_console, render_markdown
from .utils import find_project_root, write_json

EXIT_OK = 0
EXIT_CRITICAL = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hyva-compat", description="Hyvä compatibility checker for Magento modules")
    sub = parser.add_subparsers(dest="cmd", required=True)

    check = sub.add_parser("check", help="Check modules for Hyvä compatibility issues")
    check.add_argument("path", nargs="?", default=".", help="Magento root (or any child path)")
    check.add_argument("--registry", default=None, help="YAML/JSON file mapping module name to path")
    check.add_argument("--config", default=None, help="Config file (default: <root>/.hyva-compat.yml)")
    check.add_argument("-a", "--show-all", action="store_true", help="Show all modules including compatible ones")
    check.add_argument(
        "-t", "--third-party-only", action="store_true", help="Check only third-party modules (exclude Magento_*)"
    )
    check.add_argument(
        "--include-vendor", action="store_true", help="Scan every module, including Magento_* core modules"
    )
    check.add_argument("--exclude-vendor", action="store_true", help="Skip modules installed under vendor/")
    check.add_argument(
        "-d", "--detailed", action="store_true", help="Show file-level issues for incompatible modules"
    )
    check.add_argument("--json", nargs="?", const="-", default=None, metavar="FILE", help="Write JSON report")
    check.add_argument("--markdown", action="store_true", help="Emit HYVA_COMPATIBILITY.md in the root")
    check.add_argument("--workers", type=int, default=None, help="Parallel module scans")
    check.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")

    rules = sub.add_parser("rules", help="List the active detection rules")
    rules.add_argument("path", nargs="?", default=".", help="Magento root (or any child path)")
    rules.add_argument("--config", default=None, help="Config file (default: <root>/.hyva-compat.yml)")
    return parser


def resolve_filters(args) -> tuple:
    """Return (third_party_only, exclude_vendor) for the CLI flags.

    Without flags only third-party modules are scanned. Vendor paths are
    excluded only on request, never as a side effect of --third-party-only.
    """
    third_party_only = args.third_party_only or not args.include_vendor
    return third_party_only, args.exclude_vendor


def run_check(args) -> int:
    root = find_project_root(args.path)
    cfg = load_config(root, args.config)
    registry = load_registry(args.registry) if args.registry else discover_modules(root)
    third_party_only, exclude_vendor = resolve_filters(args)
    workers = args.workers if args.workers is not None else int(cfg.data.get("workers") or 1)

    checker = CompatibilityChecker(config=cfg)
    report = checker.check(
        registry,
        args.show_all,
        third_party_only,
        exclude_vendor,
        workers=max(1, workers),
    )

    if args.json == "-":
        write_json(report)
    else:
        print(render_console(report, checker, args.show_all or args.detailed, args.detailed))
        if args.json:
            write_json(report, args.json)

    if args.markdown:
        render_markdown(report, checker, root)

    return EXIT_CRITICAL if report.summary.critical_issues > 0 else EXIT_OK


def run_rules(args) -> int:
    root = find_project_root(args.path)
    cfg = load_config(root, args.config)
    for rule in cfg.rules():
        print(f"{rule.id:<28} {rule.category:<9} {rule.severity:<9} {rule.description}")
    return EXIT_OK


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging("DEBUG" if getattr(args, "verbose", False) else None)

    try:
        if args.cmd == "rules":
            return run_rules(args)
        return run_check(args)
    except (ConfigError, RegistryError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
