"""
Command line entry point for running the fetch-questions handler once.

    python -m fetch_questions.cli --event event.json
"""

import argparse
import asyncio
import json
import logging
import sys

from fetch_questions.config import app_config, validate_config
from fetch_questions.handler import build_fetch_questions_handler


async def run(event_path: str) -> dict:
    if event_path == "-":
        event = json.load(sys.stdin)
    else:
        with open(event_path, 'r', encoding='utf-8') as f:
            event = json.load(f)

    handler = build_fetch_questions_handler()
    try:
        return await handler.handler(event)
    finally:
        await handler.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Fetch KBV questions for a session")
    parser.add_argument("--event", required=True, help="Path to the input event JSON ('-' for stdin)")
    parser.add_argument("--log-level", default=app_config.log_level, help="Logging level")

    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper())

    if not validate_config():
        print("Invalid configuration, see log for details", file=sys.stderr)
        return 2

    result = asyncio.run(run(args.event))
    print(json.dumps(result, indent=2))
    return 1 if "error" in result else 0


if __name__ == "__main__":
    sys.exit(main())
