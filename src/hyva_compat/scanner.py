from __future__ import annotations
import json, os
from threading import Event
from typing import Any, Dict, Iterable, List, Optional

import structlog
from pathspec import GitIgnoreSpec

from .config import Config
from .detector import IncompatibilityDetector, file_extension
from .errors import FilesystemAccessError, InvalidModulePath, ManifestParseError, ScanCancelled
from .fs import FileSystem, LocalFileSystem
from .models import ModuleInfo, ScanResult

log = structlog.get_logger("hyva_compat.scanner")


def build_exclude_spec(exclude_dirs: Iterable[str], patterns: Iterable[str] = ()) -> GitIgnoreSpec:
    # "name/" matches a directory of that name at any depth
    lines = [f"{name.strip('/')}/" for name in exclude_dirs]
    lines.extend(patterns)
    return GitIgnoreSpec.from_lines(lines)


class ModuleScanner:
    def __init__(
        self,
        detector: Optional[IncompatibilityDetector] = None,
        fs: Optional[FileSystem] = None,
        config: Optional[Config] = None,
    ):
        cfg = config or Config()
        self.fs = fs or LocalFileSystem()
        self.detector = detector or IncompatibilityDetector(
            rules=cfg.rules(), fs=self.fs, extensions=cfg.section("extensions")
        )
        self.scan_extensions = set(self.detector.extensions)
        self.exclude = build_exclude_spec(cfg.data.get("exclude_dirs") or [], cfg.data.get("exclude") or [])
        self.manifest = cfg.data.get("manifest") or "composer.json"
        aware = cfg.section("aware")
        self.aware_namespace = aware.get("namespace", "hyva-themes/")
        self.compat_marker = aware.get("compat_marker", "-compat")

    def scan_module(self, module_path: str, cancel: Optional[Event] = None) -> ScanResult:
        result = ScanResult()
        try:
            root = self._module_root(module_path)
        except InvalidModulePath as e:
            log.debug("scanner.invalid_module_path", path=module_path, error=str(e))
            return result

        for abspath in self.find_relevant_files(root):
            if cancel is not None and cancel.is_set():
                raise ScanCancelled(module_path)
            issues = self.detector.detect_in_file(abspath)
            if issues:
                result.add(self._relative(root, abspath), issues)
        return result

    def find_relevant_files(self, root: str) -> List[str]:
        files: List[str] = []
        self._collect(root, root, files)
        return files

    def _collect(self, root: str, directory: str, out: List[str]):
        try:
            entries = self.fs.list_dir(directory)
        except FilesystemAccessError as e:
            log.debug("scanner.dir_unreadable", path=directory, error=str(e))
            return
        for entry in entries:
            rel = self._relative(root, entry)
            if self.fs.is_dir(entry):
                # symlinked directories are not followed, as with os.walk
                if self.fs.is_link(entry):
                    log.debug("scanner.symlink_skipped", path=entry)
                    continue
                if self.exclude.match_file(rel + "/"):
                    continue
                self._collect(root, entry, out)
                continue
            if file_extension(entry) not in self.scan_extensions:
                continue
            if self.exclude.match_file(rel):
                continue
            out.append(entry)

    def get_module_info(self, module_path: str) -> ModuleInfo:
        try:
            data = self._read_manifest(module_path)
        except ManifestParseError as e:
            log.debug("scanner.manifest_unusable", path=module_path, error=str(e))
            return ModuleInfo()
        name = data.get("name")
        version = data.get("version")
        return ModuleInfo(
            name=name if isinstance(name, str) and name else "Unknown",
            version=version if isinstance(version, str) and version else "Unknown",
            is_aware=self.is_compatibility_package(data),
        )

    def has_compatibility_package(self, module_path: str) -> bool:
        return self.get_module_info(module_path).is_aware

    def is_compatibility_package(self, manifest: Dict[str, Any]) -> bool:
        name = manifest.get("name")
        if isinstance(name, str) and name.startswith(self.aware_namespace) and self.compat_marker in name:
            return True
        requires = manifest.get("require")
        if isinstance(requires, dict):
            return any(str(pkg).startswith(self.aware_namespace) for pkg in requires)
        return False

    def _read_manifest(self, module_path: str) -> Dict[str, Any]:
        path = os.path.join(module_path, self.manifest)
        if not self.fs.exists(path):
            raise ManifestParseError(f"{path} not found")
        try:
            data = json.loads(self.fs.read_text(path))
        except (FilesystemAccessError, ValueError) as e:
            raise ManifestParseError(f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise ManifestParseError(f"{path}: expected a JSON object")
        return data

    def _module_root(self, module_path: str) -> str:
        if not module_path or not self.fs.is_dir(module_path):
            raise InvalidModulePath(f"{module_path!r} is not a directory")
        return module_path.rstrip("/\\") or module_path

    @staticmethod
    def _relative(root: str, path: str) -> str:
        return os.path.relpath(path, root).replace(os.sep, "/")
