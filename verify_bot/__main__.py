"""
Entry point for running the package as a module:
    python -m verify_bot
"""
from verify_bot.main import main


if __name__ == "__main__":
    main()
