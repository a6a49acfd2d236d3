# ccruntime/diag.py
from __future__ import annotations

import logging
from pathlib import Path

from ccruntime.errors import HostProbeError

log = logging.getLogger(__name__)

UNKNOWN = "unknown"

OS_RELEASE_PATHS: tuple[Path, ...] = (Path("/etc/os-release"), Path("/usr/lib/os-release"))

# CPU flags and kernel modules a host needs to run Clear Containers
REQUIRED_CPU_FLAGS: dict[str, str] = {
    "vmx": "Virtualization support",
    "lm": "64Bit CPU",
    "sse4_1": "SSE4.1",
}
REQUIRED_KERNEL_MODULES: dict[str, str] = {
    "kvm": "Kernel-based Virtual Machine",
    "kvm_intel": "Intel KVM",
    "vhost": "Host kernel accelerator for virtio",
    "vhost_net": "Host kernel accelerator for virtio network",
}


def _read_text(path: Path, probe: str) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as err:
        raise HostProbeError(probe, f"cannot read {path}: {err.strerror}") from err


def parse_os_release(text: str) -> dict[str, str]:
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        fields[key.strip()] = value.strip().strip("\"'")
    return fields


def parse_cpuinfo(text: str) -> dict[str, str]:
    """Fields of the first processor block of /proc/cpuinfo."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        if not line.strip():
            if fields:
                break
            continue
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        fields.setdefault(key.strip(), value.strip())
    return fields


class HostProbe:
    """
    Read-only view of the host.

    Every location is a constructor argument so tests can point the probe at a
    temporary tree instead of the real /proc and /sys.
    """

    def __init__(
        self,
        proc_root: str | Path = "/proc",
        os_release_paths: tuple[Path, ...] | None = None,
        sys_module_root: str | Path = "/sys/module",
    ) -> None:
        self.proc_root = Path(proc_root)
        self.os_release_paths = os_release_paths or OS_RELEASE_PATHS
        self.sys_module_root = Path(sys_module_root)

    @property
    def cpuinfo_path(self) -> Path:
        return self.proc_root / "cpuinfo"

    def kernel_version(self) -> str:
        release = _read_text(self.proc_root / "sys" / "kernel" / "osrelease", "kernel").strip()
        if not release:
            raise HostProbeError("kernel", "empty kernel release")
        return release

    def distro(self) -> tuple[str, str]:
        for path in self.os_release_paths:
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                log.debug("os-release not readable at %s", path)
                continue
            fields = parse_os_release(text)
            return fields.get("NAME", UNKNOWN), fields.get("VERSION_ID", UNKNOWN)
        tried = ", ".join(str(p) for p in self.os_release_paths)
        raise HostProbeError("distro", f"no os-release file found (tried {tried})")

    def cpu(self) -> tuple[str, str]:
        fields = parse_cpuinfo(_read_text(self.cpuinfo_path, "cpu"))
        return fields.get("vendor_id", UNKNOWN), fields.get("model name", UNKNOWN)

    def check_capable(self) -> None:
        """Raise HostProbeError listing every missing CPU flag and kernel module."""
        fields = parse_cpuinfo(_read_text(self.cpuinfo_path, "capability"))
        flags = set(fields.get("flags", "").split())

        missing = [
            f"CPU flag {flag!r} ({desc})"
            for flag, desc in REQUIRED_CPU_FLAGS.items()
            if flag not in flags
        ]
        missing += [
            f"kernel module {mod!r} ({desc})"
            for mod, desc in REQUIRED_KERNEL_MODULES.items()
            if not (self.sys_module_root / mod).exists()
        ]
        if missing:
            raise HostProbeError("capability", "missing " + ", ".join(missing))

    def is_capable(self) -> bool:
        # "not capable" is a normal answer, never an error
        try:
            self.check_capable()
        except HostProbeError as err:
            log.debug("Host is not capable: %s", err)
            return False
        return True
