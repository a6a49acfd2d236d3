# ccruntime/errors.py
from __future__ import annotations


class CCRuntimeError(RuntimeError):
    """Base class for every failure reported to the user by cc-runtime."""


class ConfigError(CCRuntimeError):
    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(f"{message}: {path}" if path else message)
        self.path = path


class PathResolutionError(CCRuntimeError):
    def __init__(self, subsystem: str, path: str, reason: str | None = None) -> None:
        msg = f"cannot resolve {subsystem} path {path!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)
        self.subsystem = subsystem
        self.path = path


class ConfigNarrowingError(CCRuntimeError):
    def __init__(self, subsystem: str) -> None:
        super().__init__(f"cannot determine {subsystem} config")
        self.subsystem = subsystem


class HostProbeError(CCRuntimeError):
    def __init__(self, probe: str, reason: str) -> None:
        super().__init__(f"host {probe} probe failed: {reason}")
        self.probe = probe


class SerializationError(CCRuntimeError):
    pass
