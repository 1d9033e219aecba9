"""
Wilson Bot - forwards canned messages to chat webhooks.

This package stores a fixed set of messages, exposes them over an HTTP API
and sends a randomly chosen one to a Google Chat or Discord webhook, either
on demand or on a cron schedule.

Example:
    Basic usage:

    ```python
    from wilson_bot.main import main

    if __name__ == "__main__":
        main()
    ```
"""

__version__ = "0.1.0"

# Only import main function to avoid circular dependencies during development
def main():
    """Main entry point for Wilson Bot."""
    from wilson_bot.main import main as _main
    return _main()

__all__ = ["main", "__version__"]
