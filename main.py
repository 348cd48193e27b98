"""Root entry point for VerifyBot."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def main() -> None:
    load_dotenv()
    from verify_bot.runner import run_verify_bot

    run_verify_bot()


if __name__ == "__main__":
    main()
