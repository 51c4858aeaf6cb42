"""
Backfill cover_url for records that have none, from MusicBrainz / Cover Art Archive.

Records are processed one at a time with a fixed pause between them to stay
within the services' fair-use policy.

Usage:
    python -m vinylvault.backfill              # Backfill up to BACKFILL_LIMIT records
    python -m vinylvault.backfill --dry-run    # Look up covers without writing
    python -m vinylvault.backfill --limit 50 --delay 1.5
"""
import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Optional

from vinylvault.api.state import create_store
from vinylvault.config import BACKFILL_DELAY_SEC, BACKFILL_LIMIT
from vinylvault.core.cover_resolver import CoverResolver
from vinylvault.core.record_store import RecordStore, RecordStoreError

logger = logging.getLogger("vinylvault.backfill")


@dataclass
class BackfillSummary:
    total: int = 0
    updated: int = 0
    missing: int = 0
    failed: int = 0


async def backfill(
    store: RecordStore,
    resolver: CoverResolver,
    *,
    limit: int = BACKFILL_LIMIT,
    delay: float = BACKFILL_DELAY_SEC,
    dry_run: bool = False,
) -> BackfillSummary:
    """Resolve and store covers for records without one. Raises RecordStoreError if the read fails."""
    rows = store.list_records(columns=("id", "artist", "album", "cover_url"), missing_cover=True, limit=limit)
    summary = BackfillSummary(total=len(rows))
    logger.info("Found %d records with missing covers%s", summary.total, " (dry run)" if dry_run else "")

    for i, record in enumerate(rows):
        label = f"[{i + 1}/{summary.total}] {record.artist} - {record.album}"
        try:
            image = await resolver.resolve(record.artist, record.album)
            if image:
                if not dry_run:
                    store.update_record(record.id, {"cover_url": image})
                summary.updated += 1
                logger.info("%s: %s", label, image)
            else:
                summary.missing += 1
                logger.info("%s: no cover found", label)
        except RecordStoreError as e:
            summary.failed += 1
            logger.error("%s: update failed: %s", label, e)
        except Exception as e:
            summary.failed += 1
            logger.warning("%s: error: %s", label, e)
        if i < summary.total - 1:
            await asyncio.sleep(delay)

    logger.info("Done. Updated %d/%d covers.", summary.updated, summary.total)
    return summary


async def _run(args: argparse.Namespace) -> int:
    store = create_store()
    try:
        async with CoverResolver() as resolver:
            await backfill(store, resolver, limit=args.limit, delay=args.delay, dry_run=args.dry_run)
    except RecordStoreError as e:
        logger.error("DB read error: %s", e)
        return 1
    finally:
        store.close()
    return 0


def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="Backfill album cover images")
    parser.add_argument("--dry-run", action="store_true", help="Only preview, do not update the store")
    parser.add_argument("--limit", type=int, default=BACKFILL_LIMIT, help="Max records to process")
    parser.add_argument("--delay", type=float, default=BACKFILL_DELAY_SEC, help="Seconds between records")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
