"""
Append-only deployment log.

Each entry is one write of "<YYYY-MM-DD HH:MM:SS> --- <LEVEL>: <message>".
No rotation, no filtering. An empty path turns the log into a no-op.
"""

import os
from datetime import datetime

from constants import LEVEL_INFO, LOG_FILE_MODE, LOG_SEPARATOR, LOG_TIME_FORMAT


def format_log_line(message, level=LEVEL_INFO, now=None):
    """Render a single log entry, newline included."""
    now = now or datetime.now()
    return f"{now.strftime(LOG_TIME_FORMAT)}{LOG_SEPARATOR}{level}: {message}\n"


class DeployLog:
    """Writes deployment events to the configured log file."""

    def __init__(self, path):
        self.path = path or ""

    @property
    def enabled(self):
        return bool(self.path)

    def _ensure_file(self):
        if not os.path.exists(self.path):
            # Create the log file; anyone may write to it
            with open(self.path, "a", encoding="utf-8"):
                pass
            os.chmod(self.path, LOG_FILE_MODE)

    def write(self, message, level=LEVEL_INFO):
        """
        Append a message to the log file.

        Args:
            message (str): Text to log (may span several lines).
            level (str): INFO, WARNING, ERROR, ...

        Raises:
            OSError: If the file cannot be created or written.
        """
        if not self.enabled:
            return

        self._ensure_file()
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(format_log_line(message, level))
