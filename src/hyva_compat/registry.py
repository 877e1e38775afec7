from __future__ import annotations
import os, re
from glob import glob
from typing import Dict

import structlog
import yaml

from .errors import RegistryError

log = structlog.get_logger("hyva_compat.registry")

# registration.php locations relative to a Magento root
REGISTRATION_GLOBS = [
    "app/code/*/*/registration.php",
    "vendor/*/*/registration.php",
    "vendor/*/*/src/registration.php",
]

MODULE_REGISTRATION = re.compile(
    r"""ComponentRegistrar::register\(\s*ComponentRegistrar::MODULE\s*,\s*['"]([A-Za-z0-9_]+)['"]"""
)


def load_registry(path: str) -> Dict[str, str]:
    """Read a ``{module name: module path}`` mapping from a YAML or JSON file.

    Relative module paths are resolved against the directory of the file.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise RegistryError(f"cannot read registry {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RegistryError(f"invalid registry {path}: {e}") from e
    if not isinstance(data, dict):
        raise RegistryError(f"{path}: expected a mapping of module name to path")

    base = os.path.dirname(os.path.abspath(path))
    registry: Dict[str, str] = {}
    for name, mod_path in data.items():
        if not isinstance(mod_path, str) or not mod_path:
            raise RegistryError(f"{path}: module {name!r} has no path")
        registry[str(name)] = os.path.normpath(os.path.join(base, mod_path))
    return registry


def discover_modules(root: str) -> Dict[str, str]:
    registry: Dict[str, str] = {}
    for pattern in REGISTRATION_GLOBS:
        for reg_file in sorted(glob(os.path.join(root, pattern))):
            try:
                with open(reg_file, "r", encoding="utf-8", errors="ignore") as f:
                    txt = f.read()
            except OSError as e:
                log.debug("registry.unreadable", path=reg_file, error=str(e))
                continue
            m = MODULE_REGISTRATION.search(txt)
            if not m:
                continue
            name = m.group(1)
            if name in registry:
                log.debug("registry.duplicate", module=name, kept=registry[name], ignored=reg_file)
                continue
            registry[name] = os.path.dirname(os.path.abspath(reg_file))
    log.info("registry.discovered", root=root, modules=len(registry))
    return registry
