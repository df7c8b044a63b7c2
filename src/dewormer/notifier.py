"""Notifiers that surface scan results to the user"""

import shutil
import subprocess
import sys
from abc import ABC, abstractmethod
from typing import List, Optional

import click


ALERT_TITLE = "Dewormer - Threats Detected"


class Notifier(ABC):
    """Receives the finding count and a human-readable summary after each cycle"""

    @abstractmethod
    def notify(self, count: int, summary: str):
        pass


class ConsoleNotifier(Notifier):
    """Echo the summary to the terminal"""

    def notify(self, count: int, summary: str):
        if count > 0:
            click.echo(click.style(f"🔔 {summary}", fg='red', bold=True), err=True)
        else:
            click.echo(click.style(f"🔔 {summary}", fg='green'))


class DesktopNotifier(ConsoleNotifier):
    """
    Console notifier that also raises a desktop alert when threats are found

    Uses ``notify-send`` on Linux and ``osascript`` on macOS. Other platforms,
    Windows included, have no desktop alert; a warning is printed and the
    console output stands.
    """

    TOOLS = {'linux': 'notify-send', 'darwin': 'osascript'}

    def __init__(self, platform: Optional[str] = None):
        self.platform = platform or sys.platform

    def notify(self, count: int, summary: str):
        super().notify(count, summary)
        if count == 0:
            return

        tool = self._tool()
        if tool is None:
            self._warn(f"Desktop alerts are not supported on platform '{self.platform}'")
            return
        if shutil.which(tool) is None:
            self._warn(f"No desktop notification tool available ({tool} not found)")
            return

        try:
            subprocess.run(self._alert_command(tool, ALERT_TITLE, summary),
                           check=True, capture_output=True, timeout=10)
        except (OSError, subprocess.SubprocessError) as e:
            self._warn(f"Desktop notification failed: {e}")

    def _tool(self) -> Optional[str]:
        for prefix, tool in self.TOOLS.items():
            if self.platform.startswith(prefix):
                return tool
        return None

    @staticmethod
    def _alert_command(tool: str, title: str, message: str) -> List[str]:
        if tool == 'osascript':
            script = f'display notification {_applescript_string(message)} with title {_applescript_string(title)}'
            return ['osascript', '-e', script]
        return ['notify-send', '--urgency=critical', title, message]

    @staticmethod
    def _warn(message: str):
        click.echo(click.style(f"⚠️  Warning: {message}", fg='yellow'), err=True)


def _applescript_string(value: str) -> str:
    escaped = value.replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'
