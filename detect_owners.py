#!/usr/bin/env python3
"""
Resolve owners for changed files from the command line.

Usage:
    python detect_owners.py app/src/Main.kt core/Util.kt
    python detect_owners.py --text "Crash in app/src/Main.kt, see network"
    python detect_owners.py --base origin/main --head HEAD

Prints the JSON result followed by the comma-separated handle list.
Exits with status 2 on fatal misconfiguration.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog
from sqlalchemy.exc import SQLAlchemyError

from owner_routing.config import settings
from owner_routing.connectors import GitHistoryClient
from owner_routing.models.database import build_engine as build_db_engine
from owner_routing.models.database import init_db
from owner_routing.observability import configure_logging
from owner_routing.ownership.errors import ConfigurationError, StoreUnavailable
from owner_routing.ownership.extraction import extract_artifacts
from owner_routing.ownership.service import build_engine, build_store, known_modules, sync_manifest

logger = structlog.get_logger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve code owners for artifacts")
    parser.add_argument("artifacts", nargs="*", help="File paths or module names")
    parser.add_argument("--text", help="Free text to extract paths and modules from")
    parser.add_argument("--base", help="Resolve files changed since this ref")
    parser.add_argument("--head", default="HEAD", help="Head ref for --base (default: HEAD)")
    parser.add_argument("--repo-root", type=Path, default=None, help="Repository root")
    parser.add_argument("--no-store", action="store_true", help="Do not use the ownership database")
    parser.add_argument("--no-history", action="store_true", help="Do not fall back to git history")
    parser.add_argument("--sync-manifest", action="store_true", help="Copy manifest rules into the store first")
    return parser.parse_args(argv)


async def collect_artifacts(args: argparse.Namespace, vcs: GitHistoryClient) -> list[str]:
    artifacts = list(args.artifacts)
    if args.text:
        artifacts.extend(extract_artifacts(args.text, known_modules(settings)))
    if args.base:
        artifacts.extend(await vcs.changed_files(args.base, args.head))

    unique: list[str] = []
    for artifact in artifacts:
        if artifact not in unique:
            unique.append(artifact)
    return unique


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(fmt="console")

    config = settings
    if args.repo_root is not None:
        config = settings.model_copy(update={"repo_root": args.repo_root})
    if args.no_history:
        config = config.model_copy(update={"history_enabled": False})

    vcs = GitHistoryClient(config.repo_root)
    db = None
    store = None
    if not args.no_store:
        db = build_db_engine(config.database_url)
        try:
            await init_db(db)
            store = build_store(config, db)
        except (SQLAlchemyError, OSError, ConfigurationError) as e:
            logger.warning("Ownership database unavailable, continuing without it", error=str(e))
            store = None

    try:
        try:
            engine = build_engine(config, store=store, vcs=vcs)
        except ConfigurationError as e:
            logger.error("Cannot resolve ownership", error=str(e))
            return 2

        if args.sync_manifest and engine.manifest is not None and store is not None:
            try:
                await sync_manifest(engine.manifest, store)
            except StoreUnavailable as e:
                logger.warning("Manifest sync failed", error=str(e))

        artifacts = await collect_artifacts(args, vcs)
        if not artifacts:
            logger.warning("No artifacts to resolve")

        result = await engine.resolve(artifacts)
        print(json.dumps(result.to_response(), indent=2))
        print(",".join(result.handles))
        return 0
    finally:
        if db is not None:
            await db.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
