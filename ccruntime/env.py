# ccruntime/env.py
"""
Environment snapshot used by the `cc-env` command.

build_snapshot() reads the runtime configuration and the host once, maps each
source into an immutable record and returns the EnvInfo aggregate. Any failure
aborts the whole snapshot; only the virtualization-capability probe degrades
to CCCapable = False.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

import ccruntime
from ccruntime.config import (
    CCProxyConfig,
    CCShimConfig,
    HyperstartAgentConfig,
    RuntimeConfig,
    hypervisor_details,
)
from ccruntime.diag import UNKNOWN, HostProbe
from ccruntime.errors import ConfigNarrowingError
from ccruntime.utils import resolve_path

log = logging.getLogger(__name__)

# Semantic version of the cc-env output.
# Bump it for every change to the output format, i.e. any change to EnvInfo.
FORMAT_VERSION = "1.0.0"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_pascal, populate_by_name=True)


class MetaInfo(_Record):
    version: str = FORMAT_VERSION


class PathInfo(_Record):
    path: str
    resolved: str

    @classmethod
    def of(cls, path: str, subsystem: str) -> PathInfo:
        return cls(path=path, resolved=resolve_path(path, subsystem))


class RuntimeVersionInfo(_Record):
    semver: str
    commit: str
    oci: str = Field(alias="OCI")


class RuntimeConfigInfo(_Record):
    location: PathInfo
    # plain string: the log file may validly not exist yet
    global_log_path: str


class RuntimeInfo(_Record):
    version: RuntimeVersionInfo
    config: RuntimeConfigInfo


class ProxyInfo(_Record):
    type: str
    version: str
    url: str = Field(alias="URL")


class ShimInfo(_Record):
    type: str
    version: str
    location: PathInfo


class AgentInfo(_Record):
    type: str
    version: str
    pause_bin: PathInfo


class DistroInfo(_Record):
    name: str
    version: str


class CPUInfo(_Record):
    vendor: str
    model: str


class HostInfo(_Record):
    kernel: str
    distro: DistroInfo
    cpu: CPUInfo = Field(alias="CPU")
    cc_capable: bool = Field(alias="CCCapable")


class EnvInfo(_Record):
    """Everything displayed by `cc-env`. Changes must bump FORMAT_VERSION."""

    meta: MetaInfo
    runtime: RuntimeInfo
    hypervisor: PathInfo
    image: PathInfo
    kernel: PathInfo
    proxy: ProxyInfo
    shim: ShimInfo
    agent: AgentInfo
    host: HostInfo


# -------------------- Inputs --------------------


@dataclass(frozen=True)
class BuildInfo:
    semver: str
    commit: str
    oci: str

    @classmethod
    def current(cls) -> BuildInfo:
        return cls(
            semver=ccruntime.__version__,
            commit=ccruntime.__commit__,
            oci=ccruntime.OCI_SPEC_VERSION,
        )


@dataclass(frozen=True)
class EnvRequest:
    config_file: str
    log_file: str
    runtime_config: RuntimeConfig


# -------------------- Sub-reports --------------------


def get_meta_info() -> MetaInfo:
    return MetaInfo(version=FORMAT_VERSION)


def get_runtime_info(request: EnvRequest, build: BuildInfo) -> RuntimeInfo:
    return RuntimeInfo(
        version=RuntimeVersionInfo(semver=build.semver, commit=build.commit, oci=build.oci),
        config=RuntimeConfigInfo(
            location=PathInfo.of(request.config_file, "runtime"),
            global_log_path=request.log_file,
        ),
    )


def get_host_info(host: HostProbe) -> HostInfo:
    kernel = host.kernel_version()
    distro_name, distro_version = host.distro()
    cpu_vendor, cpu_model = host.cpu()
    return HostInfo(
        kernel=kernel,
        distro=DistroInfo(name=distro_name, version=distro_version),
        cpu=CPUInfo(vendor=cpu_vendor, model=cpu_model),
        cc_capable=host.is_capable(),
    )


def get_proxy_info(config: RuntimeConfig) -> ProxyInfo:
    proxy = config.proxy
    if not isinstance(proxy, CCProxyConfig):
        raise ConfigNarrowingError("proxy")
    return ProxyInfo(type=proxy.type, version=UNKNOWN, url=proxy.url)


def get_shim_info(config: RuntimeConfig) -> ShimInfo:
    shim = config.shim
    if not isinstance(shim, CCShimConfig):
        raise ConfigNarrowingError("shim")
    return ShimInfo(type=shim.type, version=UNKNOWN, location=PathInfo.of(shim.path, "shim"))


def get_agent_info(config: RuntimeConfig) -> AgentInfo:
    agent = config.agent
    if not isinstance(agent, HyperstartAgentConfig):
        raise ConfigNarrowingError("agent")
    return AgentInfo(
        type=agent.type,
        version=UNKNOWN,
        pause_bin=PathInfo.of(agent.pause_bin_path, "agent"),
    )


def build_snapshot(
    request: EnvRequest,
    *,
    build: BuildInfo | None = None,
    host: HostProbe | None = None,
) -> EnvInfo:
    build = build or BuildInfo.current()
    host = host or HostProbe()
    config = request.runtime_config

    meta = get_meta_info()
    runtime = get_runtime_info(request, build)
    log.debug(
        "Runtime config %s resolved to %s",
        request.config_file,
        runtime.config.location.resolved,
    )

    resolved_hv = hypervisor_details(config)
    host_info = get_host_info(host)
    log.debug("Host kernel=%s capable=%s", host_info.kernel, host_info.cc_capable)

    proxy = get_proxy_info(config)
    shim = get_shim_info(config)
    agent = get_agent_info(config)

    hv = config.hypervisor
    return EnvInfo(
        meta=meta,
        runtime=runtime,
        hypervisor=PathInfo(path=hv.path, resolved=resolved_hv.path),
        image=PathInfo(path=hv.image, resolved=resolved_hv.image),
        kernel=PathInfo(path=hv.kernel, resolved=resolved_hv.kernel),
        proxy=proxy,
        shim=shim,
        agent=agent,
        host=host_info,
    )
