#!/usr/bin/env python3
"""
Main entry point for the Catalog Webhook agent.

Polls the software catalog on a fixed interval and pushes changed entities
to the configured remote endpoint until interrupted.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from core.processor import WebhookProcessor
from core.scheduler import IntervalScheduler
from core.settings import load_settings
from utils.logger import setup_logging_from_settings


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Catalog Webhook - push catalog changes to a remote endpoint')
    parser.add_argument(
        '--config',
        type=str,
        help='Path to settings.yaml (default: config/settings.yaml)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    args = parser.parse_args(argv)

    load_dotenv()
    settings = load_settings(args.config)
    setup_logging_from_settings(settings.logging, verbose=args.verbose)
    logger = logging.getLogger('main')

    scheduler = IntervalScheduler(blocking=True)
    processor = WebhookProcessor(settings, scheduler=scheduler)

    if not processor.start():
        return 0

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down")
        scheduler.shutdown(wait=False)
    return 0


if __name__ == '__main__':
    sys.exit(main())
