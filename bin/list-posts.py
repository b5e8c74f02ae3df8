"""Print posts as a given viewer sees them.

Usage:
    bin/list-posts.py                             # All posts, no viewer
    bin/list-posts.py --viewer 42                 # All posts, liked flags for user 42
    bin/list-posts.py --viewer 42 --liked         # Only posts user 42 liked
    bin/list-posts.py --backend mongodb --viewer 65f0c0ffee0000000000abcd --liked
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
from contentstore.models import Post
from contentstore.repository import build_repositories


def format_post(post: Post) -> str:
    mark = "♥" if post.liked else " "
    author = "(no author)"
    if post.author:
        author = f"{post.author.first_name} {post.author.last_name}"
        if post.author.email:
            author += f" <{post.author.email}>"
    return f"{mark} {post.id:>24}  {post.title}  by {author}"


def main():
    parser = argparse.ArgumentParser(description="List posts for a viewer")
    parser.add_argument("--config", type=Path, default=None, help="Path to app.yml")
    parser.add_argument(
        "--backend", choices=[b.value for b in StorageBackend],
        help="Storage backend (default: from config)",
    )
    parser.add_argument("--viewer", default=None, help="Viewing user id")
    parser.add_argument(
        "--liked", action="store_true",
        help="Only posts the viewer liked (requires --viewer)",
    )
    args = parser.parse_args()

    if args.liked and not args.viewer:
        parser.error("--liked requires --viewer")

    config = AppConfig.from_yaml(args.config)
    if args.backend:
        config.backend = StorageBackend(args.backend)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        repos = build_repositories(config)
        if args.liked:
            posts = repos.posts.liked_list(args.viewer)
        else:
            posts = repos.posts.list(args.viewer)
    except RepositoryError as e:
        print(f"Failed to list posts ({e.kind.value}): {e}")
        sys.exit(1)

    print(f"{len(posts)} posts on {config.backend.value}")
    for post in posts:
        print(f"  {format_post(post)}")


if __name__ == "__main__":
    main()
