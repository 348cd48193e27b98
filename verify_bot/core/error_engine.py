"""Persistent log of unexpected failures.

Expected outcomes (unreadable screenshots, missing fields) are reported to
the member and stay out of this file. Everything else lands here with its
traceback and the verification it interrupted.
"""

import logging
from logging.handlers import RotatingFileHandler
import os
import sys
import traceback
from typing import Optional

DEFAULT_LOG_FILE = "logs/verify_bot_errors.log"


def _describe(context: str, details: dict) -> str:
    parts = [context or "unknown"]
    parts.extend(f"{key}={value}" for key, value in details.items() if value is not None)
    return " ".join(parts)


class ErrorEngine:
    def __init__(self, log_file: str = DEFAULT_LOG_FILE, *, max_bytes: int = 1_000_000, backup_count: int = 5):
        self.logger = logging.getLogger("VerifyBotErrorEngine")
        self.log_file = os.path.abspath(log_file)
        os.makedirs(os.path.dirname(self.log_file), exist_ok=True)
        # The runner and main() may both build an engine; one handler per file
        if not any(getattr(h, "baseFilename", None) == self.log_file for h in self.logger.handlers):
            handler = RotatingFileHandler(self.log_file, maxBytes=max_bytes, backupCount=backup_count)
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
            self.logger.addHandler(handler)
        self.logger.setLevel(logging.ERROR)

    def log_exception(self, exc: BaseException, context: str = "", **details) -> None:
        where = _describe(context, details)
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self.logger.error("Exception in %s: %s\n%s", where, exc, tb)
        print(f"[VerifyBot Error] {exc} in {where}", file=sys.stderr)

    def log_verification_failure(
        self,
        exc: BaseException,
        *,
        user_id: int,
        thread_id: Optional[int] = None,
        stage: str = "verification",
    ) -> None:
        """Record a failure that interrupted a member's verification."""
        self.log_exception(exc, context=stage, user=user_id, thread=thread_id)

    def catch_uncaught(self):
        def handle_exception(exc_type, exc_value, exc_traceback):
            if issubclass(exc_type, KeyboardInterrupt):
                sys.__excepthook__(exc_type, exc_value, exc_traceback)
                return
            self.log_exception(exc_value, context="Uncaught Exception")
        sys.excepthook = handle_exception
