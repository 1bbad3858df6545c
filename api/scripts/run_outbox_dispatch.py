"""
CLI: una pasada del dispatcher del outbox hacia Airtable.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cuando no se usa el trigger HTTP.

Ejecucion:
  python scripts/run_outbox_dispatch.py
  python scripts/run_outbox_dispatch.py --limit 20
  python scripts/run_outbox_dispatch.py --replay-failed
  python scripts/run_outbox_dispatch.py --release-stale 5
"""
from __future__ import annotations

import argparse
import asyncio
from datetime import timedelta
import sys
from pathlib import Path

from loguru import logger

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

from mentor_sync.application.use_cases.outbox_dispatcher import OutboxDispatcher  # noqa: E402
from mentor_sync.infrastructure.database.session import close_db, session_scope  # noqa: E402


async def run(limit: int | None, replay_failed: bool, release_stale: int | None) -> int:
    try:
        async with session_scope() as session:
            dispatcher = OutboxDispatcher(session)
            if release_stale is not None:
                released = await dispatcher.recover_stale(timedelta(minutes=release_stale))
                logger.info(f"Items huerfanos re-encolados: {len(released)}")
            if replay_failed:
                replayed = await dispatcher.replay_failed()
                logger.info(f"Items re-encolados: {replayed}")

            result = await dispatcher.dispatch_pending(limit)
    finally:
        await close_db()

    for err in result.errors:
        logger.warning(f"  {err.item_id}: {err.error}")
    logger.info(
        f"Dispatch OK: processed={result.processed}, "
        f"succeeded={result.succeeded}, failed={result.failed}"
    )
    return 1 if result.failed else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Procesa items pendientes del outbox de Airtable.")
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximo de items a procesar (default: AIRTABLE_SYNC_BATCH_SIZE).",
    )
    parser.add_argument(
        "--replay-failed",
        action="store_true",
        help="Re-encola los items fallidos antes de procesar.",
    )
    parser.add_argument(
        "--release-stale",
        type=int,
        default=None,
        metavar="MINUTOS",
        help="Re-encola items en processing sin avance hace mas de MINUTOS.",
    )
    args = parser.parse_args()
    return asyncio.run(run(args.limit, args.replay_failed, args.release_stale))


if __name__ == "__main__":
    raise SystemExit(main())
