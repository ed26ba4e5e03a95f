# desktopsetup/tasks/processes.py
from collections.abc import Iterable

from desktopsetup.core.command import run_command
from desktopsetup.core.types import ToolSpec


def running_tools(tools: Iterable[ToolSpec]) -> list[str]:
    """Names of tools whose executable currently has a live process (``pgrep -x``)."""
    running = []
    for tool in tools:
        if not tool.executable_name:
            continue
        if run_command(["pgrep", "-x", tool.executable_name], check=False, quiet=True).success:
            running.append(tool.name)
    return running
