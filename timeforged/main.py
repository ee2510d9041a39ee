"""TimeForged daemon entry point."""
from __future__ import annotations

import asyncio
import logging
import signal

from timeforged import config
from timeforged.config import WatcherSettings
from timeforged.db import connection, sqlite_migrations
from timeforged.db.factory import get_event_repository
from timeforged.observability import initialize as initialize_observability, shutdown as shutdown_observability
from timeforged.watch_list import WatchListStore
from timeforged.watcher.service import WatcherService

logger = logging.getLogger("timeforged")


async def serve() -> None:
    """Run capture until SIGINT/SIGTERM."""
    logger.info("TimeForged daemon starting up")
    initialize_observability()

    # 1. Storage
    db = await connection.get_connection()
    await sqlite_migrations.run_migrations(db)
    repo = get_event_repository(db)

    # 2. Watch list seeds the initial subscriptions
    watch_list = WatchListStore(config.WATCH_LIST_PATH)
    service = WatcherService(repo, WatcherSettings.from_config(), config.USER_ID, watch_list)
    await service.start()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops lack signal handlers; Ctrl+C still raises KeyboardInterrupt.
            pass

    try:
        await stop.wait()
    finally:
        logger.info("TimeForged daemon shutting down")
        await service.stop()
        shutdown_observability()
        await connection.close_connection()


def run() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
