# desktopsetup/core/config.py
"""
Configuration: an optional JSON file plus the process environment.

Everything is resolved once, up front, into a ``Settings`` object that is then
passed explicitly to the reconciler and the MCP flows. Nothing downstream reads
``os.environ`` for behaviour switches.
"""

import json
import os
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import Draft7Validator

from desktopsetup.core.errors import ConfigurationError
from desktopsetup.core.logger import LoggerProxy
from desktopsetup.core.types import PackageManagerKind, ToolSpec

SCHEMA = json.loads(
    resources.files("desktopsetup.schema").joinpath("config.v1.schema.json").read_text()
)

log = LoggerProxy(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "desktopsetup" / "config.json"
DEFAULT_MCP_CONFIG_PATH = (
    Path.home() / "Library" / "Application Support" / "Claude" / "claude_desktop_config.json"
)
ENV_PREFIX = "CSA_"
OVERRIDE_SUFFIXES = ("_PKG_MGR", "_PACKAGE", "_BIN", "_FORMULA", "_NPM")
FALSY_VALUES = {"0", "false", "no", "off"}

MANAGER_ALIASES: dict[str, PackageManagerKind] = {
    "brew": PackageManagerKind.HOMEBREW_FORMULA,
    "formula": PackageManagerKind.HOMEBREW_FORMULA,
    "homebrew": PackageManagerKind.HOMEBREW_FORMULA,
    "cask": PackageManagerKind.HOMEBREW_CASK,
    "npm": PackageManagerKind.NPM_GLOBAL,
    "native": PackageManagerKind.NATIVE_INSTALLER,
    **{kind.value: kind for kind in PackageManagerKind},
}

_default_properties = Draft7Validator.VALIDATORS["properties"]


def _set_defaults(validator, properties, instance, schema):
    """
    jsonschema hook: whenever a property has a 'default', insert it,
    then delegate to the original Draft7 `properties` validator.
    """
    if not isinstance(instance, dict):
        return
    for prop, subschema in properties.items():
        if "default" in subschema:
            instance.setdefault(prop, json.loads(json.dumps(subschema["default"])))

    yield from _default_properties(validator, properties, instance, schema)


_DefaultingValidator = jsonschema.validators.extend(
    Draft7Validator, {"properties": _set_defaults}
)


def load_config(config_path: Path | None = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    """
    Loads and validates the JSON config file, filling in schema defaults.

    A missing file yields pure defaults. A file that does not parse or does not
    match the schema is a ConfigurationError: we never guess at a broken config.
    """
    config: dict[str, Any] = {}

    if config_path is not None and config_path.is_file():
        log.debug(f"Loading configuration from: {config_path}")
        try:
            config = json.loads(config_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(f"Config file {config_path} is not valid JSON: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Config file {config_path} could not be read: {e}") from e

    try:
        # Two passes: the first injects nested defaults, the second validates the result.
        for _ in _DefaultingValidator(SCHEMA).iter_errors(config):
            pass
        Draft7Validator(SCHEMA).validate(config)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Config file {config_path} is invalid: {e.message}") from e

    return config


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    value = value.strip()
    return bool(value) and value.lower() not in FALSY_VALUES


def parse_manager(value: str) -> PackageManagerKind:
    try:
        return MANAGER_ALIASES[value.strip().lower()]
    except KeyError:
        known = ", ".join(kind.value for kind in PackageManagerKind)
        raise ConfigurationError(f"Unknown package manager '{value}'. Use one of: {known}") from None


def parse_tool_overrides(environ: Mapping[str, str]) -> dict[str, dict[str, str]]:
    """
    Collect ``CSA_<TOOL>_<FIELD>`` variables into ``{tool: {field: value}}``.

    ``CSA_GEMINI_NPM=@acme/gemini`` -> ``{"gemini": {"NPM": "@acme/gemini"}}``
    """
    overrides: dict[str, dict[str, str]] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX) or not value:
            continue
        for suffix in OVERRIDE_SUFFIXES:
            if name.endswith(suffix):
                tool = name[len(ENV_PREFIX) : -len(suffix)].lower()
                if tool:
                    overrides.setdefault(tool, {})[suffix[1:]] = value
                break
    return overrides


def apply_tool_overrides(
    tools: Iterable[ToolSpec], overrides: Mapping[str, Mapping[str, str]]
) -> list[ToolSpec]:
    """Return new ToolSpecs with the user's per-tool overrides applied."""
    result = []
    for tool in tools:
        fields = overrides.get(tool.key)
        if not fields:
            result.append(tool)
            continue

        changes: dict[str, Any] = {}
        manager = tool.package_manager
        if "PKG_MGR" in fields:
            manager = parse_manager(fields["PKG_MGR"])
            changes["package_manager"] = manager
        if "PACKAGE" in fields:
            changes["package_id"] = fields["PACKAGE"]
        elif "FORMULA" in fields and manager in (
            PackageManagerKind.HOMEBREW_FORMULA,
            PackageManagerKind.HOMEBREW_CASK,
        ):
            changes["package_id"] = fields["FORMULA"]
        elif "NPM" in fields and manager is PackageManagerKind.NPM_GLOBAL:
            changes["package_id"] = fields["NPM"]
        if "BIN" in fields:
            changes["executable_name"] = fields["BIN"]

        if manager is not tool.package_manager and "package_id" not in changes:
            log.warning(
                f"{ENV_PREFIX}{tool.key.upper()}_PKG_MGR switches {tool.name} to {manager.label} "
                f"but no matching package override was given; still using '{tool.package_id}'. "
                f"Set {ENV_PREFIX}{tool.key.upper()}_PACKAGE to name the package."
            )

        if changes:
            log.info(f"Applying overrides for {tool.name}: {sorted(changes)}")
            tool = tool.with_overrides(**changes)
        result.append(tool)
    return result


@dataclass
class Settings:
    config: dict[str, Any]
    non_interactive: bool = False
    non_interactive_reason: str | None = None
    dry_run: bool = False
    verbose: bool = False
    profile: str | None = None
    mcp_config_path: Path = DEFAULT_MCP_CONFIG_PATH
    tool_overrides: dict[str, dict[str, str]] = field(default_factory=dict)
    tableau_env: dict[str, str] = field(default_factory=dict)

    @property
    def script_behavior(self) -> dict[str, Any]:
        return self.config.get("script_behavior", {})

    @property
    def installer(self) -> dict[str, Any]:
        return self.config.get("installer", {})

    @property
    def xcode_poll_seconds(self) -> float:
        return float(self.installer.get("xcode_poll_seconds", 5))

    @property
    def python_series(self) -> str:
        return str(self.installer.get("python_series", "3.12"))

    @classmethod
    def from_sources(
        cls,
        config_path: Path = DEFAULT_CONFIG_PATH,
        environ: Mapping[str, str] | None = None,
        stdin_isatty: bool | None = None,
        dry_run: bool = False,
        verbose: bool = False,
        assume_yes: bool = False,
    ) -> "Settings":
        """Build settings from the config file, the environment and CLI flags."""
        env = os.environ if environ is None else environ
        config = load_config(config_path)

        reason = None
        if assume_yes:
            reason = "--yes was given"
        elif is_truthy(env.get("NONINTERACTIVE")):
            reason = "$NONINTERACTIVE is set"
        elif is_truthy(env.get("CI")):
            reason = "$CI is set"
        else:
            tty = sys.stdin.isatty() if stdin_isatty is None else stdin_isatty
            if not tty:
                reason = "stdin is not a TTY"

        profile = env.get(f"{ENV_PREFIX}PROFILE") or None
        if profile is not None and profile not in ("core", "dev"):
            raise ConfigurationError(f"{ENV_PREFIX}PROFILE must be 'core' or 'dev', got '{profile}'")

        mcp_path = env.get(f"{ENV_PREFIX}MCP_CONFIG_PATH") or config["mcp"]["config_path"]

        tableau_env = {
            key: env[f"{ENV_PREFIX}TABLEAU_{key}"]
            for key in ("SERVER", "SITE_NAME", "PAT_NAME", "PAT_VALUE")
            if env.get(f"{ENV_PREFIX}TABLEAU_{key}")
        }

        overrides = parse_tool_overrides(env)
        for fields in overrides.values():
            if "PKG_MGR" in fields:
                parse_manager(fields["PKG_MGR"])

        return cls(
            config=config,
            non_interactive=reason is not None,
            non_interactive_reason=reason,
            dry_run=dry_run,
            verbose=verbose,
            profile=profile,
            mcp_config_path=Path(mcp_path).expanduser(),
            tool_overrides=overrides,
            tableau_env=tableau_env,
        )


def generate_default_config(config_path: Path = DEFAULT_CONFIG_PATH) -> bool:
    if config_path.is_file():
        log.info("Config already exists; skipping.")
        return True

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        defaults = load_config(None)
        config_path.write_text(json.dumps(defaults, indent=4) + "\n")
    except OSError as e:
        log.error(f"Failed to write default config: {e}")
        return False
    log.info("Default configuration file created.")
    return True
