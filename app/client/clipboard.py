"""
Two-tier clipboard writer.
Tries the platform clipboard command first and falls back to an OSC 52
escape sequence, which terminals turn into a clipboard write.
"""
import base64
import logging
import shutil
import subprocess
import sys
from typing import List, Optional, Sequence, TextIO

logger = logging.getLogger(__name__)

# Checked in order; the first one found on PATH is used
CLIPBOARD_COMMANDS: List[List[str]] = [
    ["pbcopy"],
    ["wl-copy"],
    ["xclip", "-selection", "clipboard"],
    ["xsel", "--clipboard", "--input"],
    ["clip.exe"],
    ["clip"],
]

TIER_SYSTEM = "system"
TIER_TERMINAL = "terminal"


class Clipboard:
    """
    Args:
        commands: Candidate clipboard commands (defaults to CLIPBOARD_COMMANDS)
        stream: Where the OSC 52 fallback is written (defaults to stdout)
        timeout: Seconds to wait for the clipboard command
    """

    def __init__(
        self,
        commands: Optional[Sequence[Sequence[str]]] = None,
        stream: Optional[TextIO] = None,
        timeout: float = 5.0
    ):
        self.commands = [list(c) for c in (CLIPBOARD_COMMANDS if commands is None else commands)]
        self.stream = stream
        self.timeout = timeout

    def _find_command(self) -> Optional[List[str]]:
        for command in self.commands:
            if shutil.which(command[0]):
                return command
        return None

    def _copy_with_command(self, text: str) -> bool:
        command = self._find_command()
        if command is None:
            logger.debug("No clipboard command available")
            return False

        try:
            subprocess.run(command, input=text.encode("utf-8"), check=True, timeout=self.timeout)
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Clipboard command {command[0]} failed: {str(e)}")
            return False

    def _copy_with_osc52(self, text: str) -> None:
        stream = self.stream or sys.stdout
        payload = base64.b64encode(text.encode("utf-8")).decode("ascii")
        stream.write(f"\x1b]52;c;{payload}\x07")
        stream.flush()

    def copy(self, text: str) -> str:
        """
        Copy text to the clipboard.

        Returns:
            str: The tier that handled it ("system" or "terminal")
        """
        if self._copy_with_command(text):
            return TIER_SYSTEM

        self._copy_with_osc52(text)
        return TIER_TERMINAL
