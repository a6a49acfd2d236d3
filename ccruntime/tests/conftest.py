from pathlib import Path

import pytest

from ccruntime.config import (
    CCProxyConfig,
    CCShimConfig,
    HyperstartAgentConfig,
    HypervisorConfig,
    RuntimeConfig,
)
from ccruntime.diag import HostProbe
from ccruntime.env import BuildInfo, EnvRequest

CPUINFO = """\
processor\t: 0
vendor_id\t: GenuineIntel
model name\t: Intel(R) Core(TM) i7-6700 CPU @ 3.40GHz
flags\t\t: fpu vme sse4_1 lm vmx

processor\t: 1
vendor_id\t: OtherVendor
model name\t: second cpu
"""

OS_RELEASE = 'NAME="Clear Linux OS"\nVERSION_ID=19520\nID=clear-linux-os\n'


@pytest.fixture
def host_tree(tmp_path: Path) -> Path:
    """Fake /proc, os-release and /sys/module of a capable host."""
    root = tmp_path / "host"
    proc = root / "proc"
    (proc / "sys" / "kernel").mkdir(parents=True)
    (proc / "sys" / "kernel" / "osrelease").write_text("4.14.3-1.container\n", encoding="utf-8")
    (proc / "cpuinfo").write_text(CPUINFO, encoding="utf-8")
    (root / "etc").mkdir()
    (root / "etc" / "os-release").write_text(OS_RELEASE, encoding="utf-8")
    for mod in ("kvm", "kvm_intel", "vhost", "vhost_net"):
        (root / "sys" / "module" / mod).mkdir(parents=True)
    return root


@pytest.fixture
def host(host_tree: Path) -> HostProbe:
    return HostProbe(
        proc_root=host_tree / "proc",
        os_release_paths=(host_tree / "etc" / "os-release",),
        sys_module_root=host_tree / "sys" / "module",
    )


@pytest.fixture
def build() -> BuildInfo:
    return BuildInfo(semver="9.9.9", commit="abc123", oci="1.0.0-test")


@pytest.fixture
def files(tmp_path: Path) -> dict[str, Path]:
    """Files a runtime config points at; shim and pause binaries are symlinks."""
    root = tmp_path / "fs"
    root.mkdir()
    paths = {}
    for name in ("configuration.toml", "qemu", "vmlinux", "image.img", "shim-v2", "pause-real"):
        p = root / name
        p.write_text("", encoding="utf-8")
        paths[name] = p
    shim = root / "shim"
    shim.symlink_to(paths["shim-v2"])
    paths["shim"] = shim
    pause = root / "pause"
    pause.symlink_to(paths["pause-real"])
    paths["pause"] = pause
    return paths


@pytest.fixture
def runtime_config(files: dict[str, Path]) -> RuntimeConfig:
    return RuntimeConfig(
        hypervisor=HypervisorConfig(
            path=str(files["qemu"]), kernel=str(files["vmlinux"]), image=str(files["image.img"])
        ),
        proxy=CCProxyConfig(url="unix:///run/cc-oci-runtime/proxy.sock"),
        shim=CCShimConfig(path=str(files["shim"])),
        agent=HyperstartAgentConfig(pause_bin_path=str(files["pause"])),
        global_log_path="/var/log/cc-runtime.log",
    )


@pytest.fixture
def env_request(files: dict[str, Path], runtime_config: RuntimeConfig) -> EnvRequest:
    return EnvRequest(
        config_file=str(files["configuration.toml"]),
        log_file="/var/log/cc-runtime.log",
        runtime_config=runtime_config,
    )
