"""
Run one homework poll in the foreground (for testing/debugging).

Usage (from backend/ with RECRUITEE_* and GITLAB_* set):
  python -m homework_bot.scripts.run_homework_poll

Uses the same batch runner as the scheduled poll but runs in the current
process so you see all logs and the final summary.
"""
from __future__ import annotations

import sys

from homework_bot.domains.adapters import build_batch_runner
from homework_bot.platform.logging import setup_logging


def main() -> None:
    setup_logging()
    summary = build_batch_runner().poll()
    print("Summary:", summary)
    if summary["status"] != "ok":
        sys.exit(1)


if __name__ == "__main__":
    main()
