import argparse
import json
import logging
import sys

from sheetsync.core.db import SessionLocal, init_db
from sheetsync.core.logging import configure_logging_if_needed
from sheetsync.jobs.sync.errors import UpstreamFetchError
from sheetsync.jobs.sync.manager import DEFAULT_SAMPLE_LIMIT, SyncManager
from sheetsync.jobs.sync.registry import SHEETS
from sheetsync.jobs.sync.sources.google.source import create_connector
from sheetsync.jobs.sync.types import SyncMode

logger = logging.getLogger(__name__)

EXIT_NO_CREDENTIALS = 1
EXIT_NOT_OK = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Sync registered Google Sheets into the service database")
    p.add_argument("--sheet", choices=SHEETS.keys(), help="Only this sheet (default: every registered sheet)")
    p.add_argument("--mode", choices=[m.value for m in SyncMode], default=SyncMode.INCREMENTAL.value)

    p.add_argument("--validate", action="store_true", help="Compare the primary sheet with the store instead of syncing")
    p.add_argument("--sample-limit", type=int, default=DEFAULT_SAMPLE_LIMIT, help="Max samples per drift list (1-500)")
    p.add_argument("--include-all", action="store_true", help="Report every drifted record, not a sample")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging_if_needed()

    connector = create_connector()
    if connector is None:
        print(json.dumps({"success": False, "error": "Google Sheets credentials not configured"}))
        return EXIT_NO_CREDENTIALS

    init_db()
    manager = SyncManager(connector, SessionLocal)

    if args.validate:
        try:
            report = manager.validate_against_store(
                sample_limit=args.sample_limit,
                include_all_samples=args.include_all,
            )
        except UpstreamFetchError as e:
            logger.error("Validation aborted: %s", e)
            return EXIT_NOT_OK
        print(json.dumps(report, ensure_ascii=False, indent=2))
        return 0 if report["ok"] else EXIT_NOT_OK

    mode = SyncMode(args.mode)
    if args.sheet:
        results = {args.sheet: manager.sync_sheet(args.sheet, mode)}
    else:
        results = manager.sync_all(mode)

    print(json.dumps({key: r.to_dict() for key, r in results.items()}, ensure_ascii=False, indent=2))
    return 0 if all(r.success for r in results.values()) else EXIT_NOT_OK


if __name__ == "__main__":
    sys.exit(main())
