"""
Impostor - Logger
=================

Tree-style logging to the console and to log files.
"""

from datetime import datetime
from typing import List, Tuple, Optional
from zoneinfo import ZoneInfo

from impostor.core.config import LOGS_DIR, config


TIMEZONE = ZoneInfo(config.TIMEZONE)

# ANSI colors
RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[91m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
CYAN = "\033[96m"
GRAY = "\033[90m"


class Logger:
    """Tree-style logger with colors."""

    def __init__(self):
        self.log_file = LOGS_DIR / "bot.log"
        self.error_file = LOGS_DIR / "bot_error.log"

    def _timestamp(self) -> str:
        """Get formatted timestamp."""
        now = datetime.now(TIMEZONE)
        return now.strftime("%I:%M:%S %p %Z")

    def _write_file(self, message: str, error: bool = False) -> None:
        """Write to the main log file, and to the error log for warnings/errors."""
        targets = [self.log_file, self.error_file] if error else [self.log_file]
        for target in targets:
            try:
                with open(target, "a", encoding="utf-8") as f:
                    f.write(message + "\n")
            except OSError:
                pass

    def _format_tree(self, items: List[Tuple[str, str]]) -> str:
        """Format items as a tree."""
        if not items:
            return ""
        lines = []
        for i, (key, value) in enumerate(items):
            prefix = "└─" if i == len(items) - 1 else "├─"
            lines.append(f"  {prefix} {key}: {value}")
        return "\n".join(lines)

    def tree(
        self,
        title: str,
        items: List[Tuple[str, str]],
        emoji: str = "ℹ️",
        error: bool = False,
    ) -> None:
        """Log with tree format."""
        timestamp = self._timestamp()
        tree_str = self._format_tree(items)

        # Console output with colors
        color = RED if error else CYAN
        console_msg = f"{GRAY}[{timestamp}]{RESET} {emoji} {BOLD}{title}{RESET}"
        if tree_str:
            console_msg += f"\n{color}{tree_str}{RESET}"
        print(console_msg)

        # File output without colors
        file_msg = f"[{timestamp}] {emoji} {title}"
        if tree_str:
            file_msg += f"\n{tree_str}"
        self._write_file(file_msg, error=error)

    def error_tree(
        self,
        title: str,
        exc: BaseException,
        items: Optional[List[Tuple[str, str]]] = None,
    ) -> None:
        """Log an exception with optional context rows."""
        rows = list(items or [])
        rows.append(("Error Type", type(exc).__name__))
        rows.append(("Error", str(exc)[:200]))
        self.tree(title, rows, emoji="❌", error=True)

    def info(self, message: str) -> None:
        """Log info message."""
        timestamp = self._timestamp()
        print(f"{GRAY}[{timestamp}]{RESET} {BLUE}ℹ️{RESET} {message}")
        self._write_file(f"[{timestamp}] ℹ️ {message}")

    def success(self, message: str) -> None:
        """Log success message."""
        timestamp = self._timestamp()
        print(f"{GRAY}[{timestamp}]{RESET} {GREEN}✅{RESET} {message}")
        self._write_file(f"[{timestamp}] ✅ {message}")

    def warning(self, message: str) -> None:
        """Log warning message."""
        timestamp = self._timestamp()
        print(f"{GRAY}[{timestamp}]{RESET} {YELLOW}⚠️{RESET} {message}")
        self._write_file(f"[{timestamp}] ⚠️ {message}", error=True)

    def error(self, message: str) -> None:
        """Log error message."""
        timestamp = self._timestamp()
        print(f"{GRAY}[{timestamp}]{RESET} {RED}❌{RESET} {message}")
        self._write_file(f"[{timestamp}] ❌ {message}", error=True)


log = Logger()
