from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import structlog

from .errors import ConfigError
from .types import Credentials, LicenseCatalog, LicenseDefinition, Override, RuleSet


log = structlog.get_logger(__name__)

CONFIG_DIR_ENV = "LICENSE_INSPECTOR_CONFIG"
DEFAULT_CONFIG_DIR = "Config"

LICENSES_JSON = "definedlicenses.json"
EXCLUSIONS_JSON = "excludedfiles.json"
EXCLUDED_EXT_JSON = "excludedextensions.json"
INCLUSIONS_JSON = "includedfiles.json"
OVERRIDES_JSON = "overridelicense.json"
CACHE_JSON = "cache.json"

DEFAULT_RATE_FLOOR = 400
DEFAULT_FAST_DELAY = 0.05
DEFAULT_SLOW_DELAY = 2.0
DEFAULT_HTTP_TIMEOUT = 10.0


@dataclass
class ConfigPaths:
    licenses: Path
    exclusions: Path
    excluded_extensions: Path
    inclusions: Path
    overrides: Path
    cache: Path

    @classmethod
    def from_env(cls, config_dir: Path | str | None = None) -> "ConfigPaths":
        """Resolve every config file, honouring the per-file ``DES_*`` overrides."""

        base = Path(config_dir or os.environ.get(CONFIG_DIR_ENV) or DEFAULT_CONFIG_DIR)

        def _pick(env_name: str, default: str) -> Path:
            override = os.environ.get(env_name)
            return Path(override) if override else base / default

        return cls(
            licenses=_pick("DES_LIC", LICENSES_JSON),
            exclusions=_pick("DES_EXCL", EXCLUSIONS_JSON),
            excluded_extensions=_pick("DES_EXT", EXCLUDED_EXT_JSON),
            inclusions=_pick("DES_INCL", INCLUSIONS_JSON),
            overrides=_pick("DES_OVER", OVERRIDES_JSON),
            cache=_pick("DES_CACHE", CACHE_JSON),
        )


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("config.invalid_env", name=name, value=raw)
        return default


def _default_gopath() -> Path:
    gopath = os.environ.get("GOPATH")
    return Path(gopath) if gopath else Path.home() / "go"


def default_module_root() -> Path:
    modcache = os.environ.get("GOMODCACHE")
    if modcache:
        return Path(modcache)
    return _default_gopath() / "pkg" / "mod"


def default_source_root() -> Path:
    return _default_gopath() / "src"


@dataclass
class ScanSettings:
    """Run-wide knobs for a single scan."""

    module_root: Path = field(default_factory=default_module_root)
    source_root: Path = field(default_factory=default_source_root)
    destination: Path = Path(".")
    lic_folder: str = "Licenses"
    to_html: bool = False
    credentials: Optional[Credentials] = None
    rate_floor: int = DEFAULT_RATE_FLOOR
    fast_delay: float = DEFAULT_FAST_DELAY
    slow_delay: float = DEFAULT_SLOW_DELAY
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, **overrides: Any) -> "ScanSettings":
        user = os.environ.get("GITHUB_USER", "")
        token = os.environ.get("GITHUB_TOKEN", "")
        values: dict[str, Any] = {
            "credentials": Credentials(user, token) if user and token else None,
            "rate_floor": int(_env_float("LICENSE_INSPECTOR_RATE_FLOOR", DEFAULT_RATE_FLOOR)),
            "fast_delay": _env_float("LICENSE_INSPECTOR_FAST_DELAY", DEFAULT_FAST_DELAY),
            "slow_delay": _env_float("LICENSE_INSPECTOR_SLOW_DELAY", DEFAULT_SLOW_DELAY),
            "http_timeout": _env_float("LICENSE_INSPECTOR_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    @property
    def output_dir(self) -> Path:
        return self.destination / self.lic_folder

    @property
    def roots(self) -> tuple[Path, ...]:
        return (self.module_root, self.source_root)


def load_json_config(path: Path) -> Any:
    """Return the decoded JSON document, or ``None`` for a missing or empty file."""

    if not path.exists():
        return None
    raw = path.read_text()
    if len(raw.strip()) < 2:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(path, f"invalid JSON: {exc}") from exc


def _load_name_set(path: Path, label: str) -> set[str]:
    data = load_json_config(path)
    if data is None:
        log.info("config.not_found", kind=label, path=str(path))
        return set()
    if isinstance(data, dict):
        return {str(key) for key in data}
    if isinstance(data, list):
        return {str(item) for item in data}
    raise ConfigError(path, f"expected a list or object of {label}")


def load_overrides(path: Path) -> dict[str, Override]:
    data = load_json_config(path)
    if data is None:
        log.info("config.not_found", kind="overrides", path=str(path))
        return {}
    if not isinstance(data, dict):
        raise ConfigError(path, "expected an object of overrides")
    overrides: dict[str, Override] = {}
    for rel_path, entry in data.items():
        if not isinstance(entry, dict) or not entry.get("License") or not entry.get("Filename"):
            raise ConfigError(path, f"override '{rel_path}' needs both License and Filename")
        overrides[str(rel_path)] = Override(license=str(entry["License"]), filename=str(entry["Filename"]))
    return overrides


def load_rule_set(paths: ConfigPaths) -> RuleSet:
    return RuleSet(
        excluded=_load_name_set(paths.exclusions, "exclusions"),
        excluded_extensions={ext.lower() for ext in _load_name_set(paths.excluded_extensions, "extensions")},
        included=_load_name_set(paths.inclusions, "inclusions"),
        overrides=load_overrides(paths.overrides),
    )


def load_catalog(path: Path) -> LicenseCatalog:
    data = load_json_config(path)
    if data is None:
        log.info("config.not_found", kind="licenses", path=str(path))
        return LicenseCatalog()
    if not isinstance(data, list):
        raise ConfigError(path, "expected a list of license definitions")

    catalog = LicenseCatalog()
    for entry in data:
        if not isinstance(entry, dict) or "Name" not in entry:
            raise ConfigError(path, "each license definition needs a Name")
        lines = entry.get("Lines") or []
        if not isinstance(lines, list):
            raise ConfigError(path, f"Lines of '{entry['Name']}' must be a list")
        catalog.definitions.append(LicenseDefinition.from_lines(str(entry["Name"]), [str(line) for line in lines]))
    return catalog


def save_catalog(path: Path, catalog: LicenseCatalog) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([definition.as_dict() for definition in catalog], indent=2))


def define_license(path: Path, name: str, text: str) -> bool:
    """Register ``text`` as the definition of ``name``; existing names are kept."""

    catalog = load_catalog(path)
    definition = LicenseDefinition.from_lines(name, text.splitlines())
    if not definition.fragments:
        raise ConfigError(path, f"definition for '{name}' has no letters to match")
    if not catalog.add(definition):
        return False
    save_catalog(path, catalog)
    return True
