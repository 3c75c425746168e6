"""Behave environment hooks for intake integration scenarios.

Scenarios drive the in-process FastAPI app through `TestClient`; the
spreadsheet transport and the backoff sleep are scripted per scenario so no
credentials or network are needed. Optional overrides (for example
`LOG_LEVEL`) are read from a local `.env` via python-dotenv.
"""

from __future__ import annotations

import logging
from typing import Any, List

from dotenv import load_dotenv

from intake.logging_setup import configure_logging


class CollectingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def before_all(context: Any) -> None:
    load_dotenv(override=False)
    configure_logging()


def before_scenario(context: Any, scenario: Any) -> None:
    context.log_handler = CollectingHandler()
    root = logging.getLogger()
    root.addHandler(context.log_handler)
    context.previous_level = root.level
    root.setLevel(logging.DEBUG)


def after_scenario(context: Any, scenario: Any) -> None:
    root = logging.getLogger()
    root.removeHandler(context.log_handler)
    root.setLevel(context.previous_level)
    client = getattr(context, "client", None)
    if client is not None:
        client.close()
