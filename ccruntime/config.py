# ccruntime/config.py
from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ccruntime.errors import ConfigError
from ccruntime.utils import resolve_path

log = logging.getLogger(__name__)

# Searched in order when neither --config nor CC_RUNTIME_CONFIG is given
DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("/etc/clear-containers/configuration.toml"),
    Path("/usr/share/defaults/clear-containers/configuration.toml"),
)

CONFIG_ENV = "CC_RUNTIME_CONFIG"
LOG_FILE_ENV = "CC_RUNTIME_LOG_FILE"


class _Frozen(BaseModel):
    # keys this tool does not report on (machine_type, default_vcpus, ...) are ignored
    model_config = ConfigDict(frozen=True, extra="ignore")


class HypervisorConfig(_Frozen):
    type: str = "qemu"
    path: str
    kernel: str
    image: str


# -------------------- Proxy --------------------


class CCProxyConfig(_Frozen):
    type: Literal["cc"] = "cc"
    url: str


class NoopProxyConfig(_Frozen):
    type: Literal["noop"] = "noop"


ProxyConfig = Annotated[CCProxyConfig | NoopProxyConfig, Field(discriminator="type")]


# -------------------- Shim --------------------


class CCShimConfig(_Frozen):
    type: Literal["cc"] = "cc"
    path: str


class NoopShimConfig(_Frozen):
    type: Literal["noop"] = "noop"


ShimConfig = Annotated[CCShimConfig | NoopShimConfig, Field(discriminator="type")]


# -------------------- Agent --------------------


class HyperstartAgentConfig(_Frozen):
    type: Literal["hyperstart"] = "hyperstart"
    pause_bin_path: str


class NoopAgentConfig(_Frozen):
    type: Literal["noop"] = "noop"


AgentConfig = Annotated[HyperstartAgentConfig | NoopAgentConfig, Field(discriminator="type")]


class RuntimeConfig(_Frozen):
    """Parsed runtime configuration; proxy/shim/agent are closed tagged unions."""

    hypervisor: HypervisorConfig
    proxy: ProxyConfig
    shim: ShimConfig
    agent: AgentConfig
    global_log_path: str = ""


# -------------------- Loading --------------------


def find_config_file(explicit: str | os.PathLike[str] | None = None) -> Path:
    """
    Location of the configuration file.

    Priority: explicit argument (the --config option), then $CC_RUNTIME_CONFIG,
    then the first existing DEFAULT_CONFIG_PATHS entry.
    """
    chosen = explicit or os.getenv(CONFIG_ENV)
    if chosen:
        return Path(chosen)
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.exists():
            return candidate
    raise ConfigError(
        "no configuration file found, tried", ", ".join(str(p) for p in DEFAULT_CONFIG_PATHS)
    )


def _single_variant(data: dict[str, Any], section: str, path: Path) -> dict[str, Any]:
    # [proxy.cc] -> {"type": "cc", ...}
    table = data.get(section)
    if not isinstance(table, dict) or len(table) != 1:
        raise ConfigError(f"[{section}] must contain exactly one typed table", str(path))
    kind, body = next(iter(table.items()))
    if not isinstance(body, dict):
        raise ConfigError(f"[{section}.{kind}] must be a table", str(path))
    return {**body, "type": kind}


def parse_config(data: dict[str, Any], path: Path) -> RuntimeConfig:
    runtime = data.get("runtime") or {}
    raw = {
        "hypervisor": _single_variant(data, "hypervisor", path),
        "proxy": _single_variant(data, "proxy", path),
        "shim": _single_variant(data, "shim", path),
        "agent": _single_variant(data, "agent", path),
        "global_log_path": os.getenv(LOG_FILE_ENV) or runtime.get("global_log_path", ""),
    }
    try:
        return RuntimeConfig.model_validate(raw)
    except ValidationError as err:
        msg = f"invalid configuration ({err.error_count()} errors)\n{err}"
        raise ConfigError(msg, str(path)) from err


def load_config(path: str | os.PathLike[str]) -> RuntimeConfig:
    cfg_path = Path(path)
    try:
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as err:
        msg = f"cannot decode configuration ({err.reason})"
        raise ConfigError(msg, str(cfg_path)) from err
    except OSError as err:
        raise ConfigError(f"cannot read configuration ({err.strerror})", str(cfg_path)) from err
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"cannot parse configuration ({err})", str(cfg_path)) from err
    config = parse_config(data, cfg_path)
    log.debug("Loaded runtime configuration from %s", cfg_path)
    return config


def hypervisor_details(config: RuntimeConfig) -> HypervisorConfig:
    """Copy of the hypervisor section with every path symlink-resolved."""
    hv = config.hypervisor
    return hv.model_copy(
        update={
            "path": resolve_path(hv.path, "hypervisor"),
            "kernel": resolve_path(hv.kernel, "kernel"),
            "image": resolve_path(hv.image, "image"),
        }
    )
