"""Create tables (SQLite / PostgreSQL) or indexes (MongoDB) for the configured backend.

Usage:
    bin/init-schema.py                          # Backend from config/app.yml + env
    bin/init-schema.py --backend postgresql     # Override the backend
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

from contentstore.config import AppConfig, StorageBackend
from contentstore.errors import RepositoryError
from contentstore.repository import initialize_storage


def main():
    parser = argparse.ArgumentParser(description="Bootstrap the content store schema")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.yml")
    parser.add_argument(
        "--backend", choices=[b.value for b in StorageBackend],
        help="Storage backend (default: from config)",
    )
    args = parser.parse_args()

    config = AppConfig.from_yaml(args.config)
    if args.backend:
        config.backend = StorageBackend(args.backend)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        initialize_storage(config)
    except RepositoryError as e:
        print(f"Schema bootstrap failed ({e.kind.value}): {e}")
        sys.exit(1)

    print(f"Schema ready on {config.backend.value}.")


if __name__ == "__main__":
    main()
