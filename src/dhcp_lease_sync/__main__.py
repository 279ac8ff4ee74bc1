"""dhcp-lease-sync -- entry point.

Usage::

    python -m dhcp_lease_sync [--config PATH] [--events PATH] [--log-level LEVEL]

Startup sequence:
    1. Parse CLI arguments
    2. Load configuration from YAML (or defaults)
    3. Open SQLite database and run migrations
    4. Wire notifier -> persistence bridge and the reconciliation engine
    5. Follow the lease event feed until cancelled
    6. On shutdown signal: stop the source, close database
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger("dhcp_lease_sync")


# ---------------------------------------------------------------------------
# Integration seams -- thin wrappers around real subsystem constructors.
# These are module-level names so tests can patch them individually.
# ---------------------------------------------------------------------------


def load_config(config_path: str | None) -> Any:
    """Load configuration from a YAML file or return defaults."""
    from dhcp_lease_sync.config import load_settings

    path = Path(config_path) if config_path else None
    return load_settings(config_path=path)


async def open_db(db_path: Path) -> Any:
    """Open the SQLite database."""
    import aiosqlite

    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await aiosqlite.connect(str(db_path))
    db.row_factory = aiosqlite.Row
    return db


async def run_migrations(db: Any) -> None:
    """Apply pending database migrations."""
    from dhcp_lease_sync.db.migrations import apply_migrations

    await apply_migrations(db)


def create_engine(settings: Any, db: Any) -> Any:
    """Build the notifier, subscribe the persistence bridge, return the engine."""
    from dhcp_lease_sync.leases.engine import LeaseEngine
    from dhcp_lease_sync.leases.notifier import LeaseNotifier
    from dhcp_lease_sync.persistence.bridge import PersistenceBridge

    bridge = PersistenceBridge(db, match_inet_addr=settings.store.match_inet_addr)
    notifier = LeaseNotifier()
    notifier.subscribe(bridge.notify)
    if settings.store.match_inet_addr:
        logger.info("Leased-IP rows selected by hwaddr and inet_addr, coalescing off")
    return LeaseEngine(sink=notifier, coalesce=not settings.store.match_inet_addr)


def create_source(settings: Any, engine: Any) -> Any:
    """Create the JSON-lines lease event source."""
    from dhcp_lease_sync.sources.jsonl import JsonLinesLeaseSource

    return JsonLinesLeaseSource(
        path=settings.events_path,
        engine=engine,
        poll_interval=settings.source.poll_interval,
        from_start=settings.source.from_start,
    )


# ---------------------------------------------------------------------------
# CLI argument parsing
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv:
        Argument list.  Defaults to ``sys.argv[1:]`` when ``None``.
    """
    parser = argparse.ArgumentParser(
        prog="dhcp_lease_sync",
        description="Reconcile DHCP lease events into the leased-IP table",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument(
        "--events",
        type=str,
        default=None,
        help="JSON-lines lease event file to follow (overrides source.path)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (overrides agent.log_level)",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main run coroutine
# ---------------------------------------------------------------------------


async def run_agent(
    config_path: str | None = None,
    events_path: str | None = None,
    shutdown_event: asyncio.Event | None = None,
) -> None:
    """Start the agent and run until cancelled or *shutdown_event* is set.

    This is the top-level coroutine that wires all subsystems together.
    It is designed to be called from ``main()`` or directly in tests.
    """
    # 1. Load config
    settings = load_config(config_path)
    if events_path:
        settings.source.path = events_path

    # 2. Open database
    db = await open_db(settings.db_path)

    # 3. Run migrations
    await run_migrations(db)

    # 4. Engine with the persistence bridge behind the notifier
    engine = create_engine(settings, db)

    # 5. Lease event source
    source = create_source(settings, engine)
    shutdown = shutdown_event or asyncio.Event()

    logger.info(
        "%s started: db=%s, events=%s",
        settings.agent.name,
        settings.db_path,
        settings.events_path,
    )

    try:
        await source.run(shutdown)
    except asyncio.CancelledError:
        logger.info("Shutdown signal received -- stopping agent")
    finally:
        shutdown.set()

        logger.info("Closing database...")
        await db.close()

        logger.info("Agent shutdown complete")


# ---------------------------------------------------------------------------
# Script entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI args and run the agent."""
    args = parse_args()

    level = args.log_level
    if level is None:
        level = load_config(args.config).agent.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        asyncio.run(
            run_agent(
                config_path=args.config,
                events_path=args.events,
            )
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
