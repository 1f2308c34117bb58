"""Convenience script for running one news aggregation locally."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Ensure the src directory is on the Python path so the newsdash package can be imported
SRC_PATH = Path(__file__).resolve().parent / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from newsdash.config import AppConfig  # noqa: E402  (import after path setup)
from newsdash.services.aggregator import UnknownSourceError, aggregate, build_sources  # noqa: E402
from newsdash.services.metrics import log_feed_metrics, measure_feed  # noqa: E402


def main(argv: list[str] | None = None) -> None:
    """Load the source configuration, aggregate every source and print the feed."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", help="Path to a sources.json file")
    parser.add_argument("--source", help="Only query the source with this slug")
    parser.add_argument("--category", help="NewsAPI top-headlines category")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    try:
        config = AppConfig.load(args.config)
    except ValueError as exc:
        logging.error("%s", exc)
        sys.exit(1)

    try:
        sources = build_sources(config, slug=args.source, category=args.category)
    except UnknownSourceError:
        logging.error("Unknown source: %s", args.source)
        sys.exit(1)

    for source in sources:
        logging.info("Querying %s (%s)", source.name, source.config.host)

    articles = asyncio.run(aggregate(sources))
    log_feed_metrics(measure_feed(articles))

    print(json.dumps([article.model_dump(by_alias=True) for article in articles], indent=2))


if __name__ == "__main__":
    main()
