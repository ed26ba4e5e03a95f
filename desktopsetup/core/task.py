# desktopsetup/core/task.py
from dataclasses import dataclass, field
from enum import Enum


class Severity(Enum):
    """Severity of a message attached to a TaskResult."""

    DEBUG = "debug"
    HINT = "hint"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class TaskResult:
    name: str
    success: bool
    changed: bool = False
    messages: list[tuple[Severity, str]] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return any(sev is Severity.WARNING for sev, _ in self.messages)

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{status}] {self.name}: {self.messages[-1][1] if self.messages else 'No message'}"
