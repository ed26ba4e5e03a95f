# desktopsetup/mcp/registry.py
"""
Editor for the Claude Desktop MCP server registry (``claude_desktop_config.json``).

Every mutation follows the same sequence: validate, back up, patch, atomic
write. A document that fails validation is never backed up or overwritten,
so the user can still recover it by hand.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import Draft7Validator

from desktopsetup.core.errors import InvalidConfigError
from desktopsetup.core.io import atomic_write_text, backup_file
from desktopsetup.core.logger import LoggerProxy

log = LoggerProxy(__name__)

SCHEMA = json.loads(
    resources.files("desktopsetup.schema").joinpath("mcp_config.schema.json").read_text()
)
SERVERS_KEY = "mcpServers"
SECRET_MARKERS = ("TOKEN", "SECRET", "PASSWORD", "PAT_VALUE", "API_KEY", "AUTHORIZATION")
SECRET_SECTIONS = ("env", "headers")
REDACTED = "********"


class ValidationStatus(str, Enum):
    VALID = "Valid"
    INVALID = "Invalid"
    MISSING = "Missing"


class ServerPresence(str, Enum):
    EXISTS = "Exists"
    ABSENT = "Absent"


class MutationOutcome(str, Enum):
    WRITTEN = "Written"
    REMOVED = "Removed"
    NOT_FOUND = "NotFound"


@dataclass
class ValidationResult:
    status: ValidationStatus
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.status is not ValidationStatus.INVALID


@dataclass
class MutationResult:
    outcome: MutationOutcome
    backup_path: Path | None = None


@dataclass
class McpServerEntry:
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"command": self.command, "args": list(self.args), "env": dict(self.env)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> McpServerEntry:
        return cls(
            command=data.get("command", ""),
            args=list(data.get("args", [])),
            env=dict(data.get("env", {})),
        )


def is_secret_key(key: str) -> bool:
    upper = key.upper()
    return any(marker in upper for marker in SECRET_MARKERS)


def redact_entry(entry: McpServerEntry | dict[str, Any]) -> dict[str, Any]:
    """
    Display-safe copy of an entry: credential-like ``env`` and ``headers``
    values are masked. Keys this module does not model (``url``, ``type``) are kept.
    """
    data = entry.to_dict() if isinstance(entry, McpServerEntry) else copy.deepcopy(entry)
    for section in SECRET_SECTIONS:
        values = data.get(section)
        if isinstance(values, dict):
            data[section] = {k: (REDACTED if is_secret_key(k) else v) for k, v in values.items()}
    return data


class McpRegistry:
    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> tuple[ValidationResult, dict[str, Any] | None]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ValidationResult(ValidationStatus.MISSING), None
        except UnicodeDecodeError as e:
            return ValidationResult(ValidationStatus.INVALID, f"not UTF-8 text: {e}"), None
        except OSError as e:
            return ValidationResult(ValidationStatus.INVALID, f"unreadable: {e}"), None

        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            return ValidationResult(ValidationStatus.INVALID, str(e)), None

        try:
            Draft7Validator(SCHEMA).validate(document)
        except jsonschema.ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "<root>"
            return ValidationResult(ValidationStatus.INVALID, f"{location}: {e.message}"), None

        return ValidationResult(ValidationStatus.VALID), document

    def _load(self) -> dict[str, Any]:
        """Current document, or the empty registry when the file is missing."""
        result, document = self._read()
        if result.status is ValidationStatus.INVALID:
            raise InvalidConfigError(
                f"Existing config file {self.path} is invalid: {result.reason}"
            )
        if document is None:
            document = {}
        document.setdefault(SERVERS_KEY, {})
        return document

    def validate(self) -> ValidationResult:
        return self._read()[0]

    def check(self, name: str) -> ServerPresence:
        if name in self._load()[SERVERS_KEY]:
            return ServerPresence.EXISTS
        return ServerPresence.ABSENT

    def get(self, name: str) -> McpServerEntry | None:
        data = self._load()[SERVERS_KEY].get(name)
        return McpServerEntry.from_dict(data) if data is not None else None

    def get_raw(self, name: str) -> dict[str, Any] | None:
        """The stored entry exactly as written, including keys McpServerEntry drops."""
        return self._load()[SERVERS_KEY].get(name)

    def list_servers(self) -> list[str]:
        return list(self._load()[SERVERS_KEY])

    def _commit(self, document: dict[str, Any], outcome: MutationOutcome) -> MutationResult:
        backup = backup_file(self.path)
        if backup is not None:
            log.info(f"Backup created: {backup.name}")
        atomic_write_text(self.path, json.dumps(document, indent=2) + "\n")
        return MutationResult(outcome, backup_path=backup)

    def upsert(self, name: str, entry: McpServerEntry) -> MutationResult:
        """Add or replace one server entry. Everything else in the file is kept."""
        document = self._load()
        document[SERVERS_KEY][name] = entry.to_dict()
        result = self._commit(document, MutationOutcome.WRITTEN)
        log.info(f"MCP server '{name}' saved to {self.path.name}")
        return result

    def remove(self, name: str) -> MutationResult:
        document = self._load()
        if name not in document[SERVERS_KEY]:
            log.info(f"MCP server '{name}' not configured; nothing to remove.")
            return MutationResult(MutationOutcome.NOT_FOUND)
        del document[SERVERS_KEY][name]
        result = self._commit(document, MutationOutcome.REMOVED)
        log.info(f"MCP server '{name}' removed from {self.path.name}")
        return result
