import argparse
import asyncio
import logging
from pathlib import Path

from ai_tools_dashboard.config import settings
from ai_tools_dashboard.errors import TransportError
from ai_tools_dashboard.store.base import DocumentStore
from ai_tools_dashboard.store.firestore import FirestoreRestStore
from ai_tools_dashboard.store.memory import InMemoryStore

from .builder import run_build


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pre-render the dashboard as static HTML pages.")
    parser.add_argument("--out", type=Path, default=None, help="Output directory (default: OUTPUT_DIR)")
    parser.add_argument("--test-mode", action="store_true", help="Build the small sample of pages only")
    parser.add_argument(
        "--fixture", type=Path, default=None,
        help="Read documents from a JSON dump instead of Firestore",
    )
    return parser.parse_args(argv)


def make_store(fixture: Path | None) -> DocumentStore:
    if fixture is not None:
        return InMemoryStore.from_json_file(fixture)
    return FirestoreRestStore()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    try:
        stats = asyncio.run(run_build(make_store(args.fixture), output_dir=args.out, test_mode=args.test_mode))
    except TransportError:
        return 1
    return 0 if stats.pages_generated > 0 else 1
