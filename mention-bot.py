#!/usr/bin/env python3
"""
GitHub Mention Bot
Suggests reviewers for new pull requests based on blame history.
"""

import sys
import logging
from dotenv import load_dotenv
import uvicorn

from mention_bot.config import Settings
from mention_bot.server import create_app

SETUP_INSTRUCTIONS = """The bot was started without a github account to post with.
To get started:
1) Create a new account for the bot
2) Settings > Personal access tokens > Generate new token
3) Only check `public_repo` and click Generate token
4) Run the following command:
GITHUB_TOKEN=insert_token_here python mention-bot.py
5) Point a repository webhook (pull_request events) at http://<host>:5000/"""


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%m/%d/%Y %I:%M:%S %p'
    )


def main():
    """Main entry point for the script."""
    # Load environment variables from .env file if it exists
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if not settings.github_token:
        for line in SETUP_INSTRUCTIONS.splitlines():
            logging.error(line)
        sys.exit(1)

    if settings.request_timeout is None:
        logging.warning("REQUEST_TIMEOUT is disabled; a stalled GitHub call blocks its event indefinitely")

    app = create_app(settings)
    logging.info(f"Listening on port {settings.port}")
    uvicorn.run(app, host='0.0.0.0', port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
