#!/usr/bin/env python3
"""
CLI script to run a single catalog webhook pass manually.

Usage:
    python run_check.py                 # Run one pass and print the summary
    python run_check.py --reset-cache   # Forget all cached etags first
    python run_check.py --show-cache    # Print how many etags are cached
"""

import argparse
import json
import sys
import time
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from core.processor import WebhookProcessor
from core.settings import load_settings
from core.store import JsonFileStore
from core.tag_cache import TagCache
from utils.logger import setup_logging_from_settings


def main():
    parser = argparse.ArgumentParser(
        description='Catalog Webhook - single manual run'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='Path to settings.yaml (default: config/settings.yaml)'
    )
    parser.add_argument(
        '--reset-cache',
        action='store_true',
        help='Clear the stored etag cache before running'
    )
    parser.add_argument(
        '--show-cache',
        action='store_true',
        help='Print the number of cached etags and exit'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the run summary as JSON'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    load_dotenv()
    settings = load_settings(args.config)
    setup_logging_from_settings(settings.logging, verbose=args.verbose)

    store = JsonFileStore(settings.cache_file)
    tag_cache = TagCache(store)

    if args.show_cache:
        print(f"Cached etags: {len(tag_cache.load())} ({store.path})")
        return 0

    if args.reset_cache:
        tag_cache.reset()
        print("Etag cache cleared")

    if not settings.is_configured:
        print("No remoteEndpoint configured under catalog.webhook, nothing to do")
        return 1

    processor = WebhookProcessor(settings, store=store)

    print(f"\nPushing catalog changes to {settings.remote_endpoint}")
    print("-" * 50)
    result = processor.process_entities(deadline=time.monotonic() + settings.timeout_seconds)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result)

    return 0 if result.is_success else 1


if __name__ == '__main__':
    sys.exit(main())
