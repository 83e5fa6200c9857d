from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Optional, Union

from rich.logging import RichHandler


class _SuppressConsoleNoise(logging.Filter):
    """Filter out font and backend chatter from the console output."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - simple filter
        if record.name.startswith("matplotlib.font_manager"):
            return False
        if "Tight layout not applied" in record.getMessage():
            return False
        return True


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure logging to write to ``log_file`` and keep the console clean."""

    root = logging.getLogger()
    # Running the pipeline twice in one process must not duplicate lines.
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = []
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    console_handler = RichHandler(rich_tracebacks=True)
    console_handler.setLevel(level)
    console_handler.addFilter(_SuppressConsoleNoise())
    handlers.append(console_handler)

    logging.basicConfig(
        level=logging.DEBUG,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
    )
    logging.getLogger("matplotlib").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)

    logging.captureWarnings(True)

    warnings.filterwarnings("ignore", category=FutureWarning)
    warnings.filterwarnings(
        "ignore",
        message="Tight layout not applied.*",
        module="matplotlib",
    )
