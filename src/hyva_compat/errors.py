from __future__ import annotations


class HyvaCompatError(Exception):
    pass


class FilesystemAccessError(HyvaCompatError):
    """A file or directory could not be read."""

    def __init__(self, path: str, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        msg = f"cannot read {path}"
        if cause is not None:
            msg += f": {cause}"
        super().__init__(msg)


class ManifestParseError(HyvaCompatError):
    pass


class InvalidModulePath(HyvaCompatError):
    pass


class ScanCancelled(HyvaCompatError):
    pass


class ConfigError(HyvaCompatError):
    pass


class RegistryError(HyvaCompatError):
    pass
