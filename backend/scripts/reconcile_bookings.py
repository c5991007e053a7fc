#!/usr/bin/env python3
"""Finish half-written bookings.

A booking is written to the global log first and to the provider's inbox
second. If the second write never happened, this copies the log entry into
the inbox under the same id and marks the log entry synced. Safe to re-run.
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

REPO_BACKEND = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_BACKEND))

from app.services.availability_store import AvailabilityStore  # noqa: E402
from app.services.booking_service import BookingService  # noqa: E402
from app.services.document_store import DocumentStore, DocumentStoreError, default_db  # noqa: E402


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcile booking log entries with provider inboxes.")
    parser.add_argument(
        "--db",
        default=os.getenv("SCHEDULER_DB_PATH", default_db),
        help="Path to the scheduler SQLite database",
    )
    parser.add_argument("--verbose", action="store_true", help="Log each repaired booking")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    documents = DocumentStore(db_path=args.db)
    service = BookingService(documents=documents, profiles=AvailabilityStore(documents=documents))
    try:
        summary = service.reconcile_inboxes()
    except DocumentStoreError:
        logging.getLogger(__name__).exception("Reconciliation aborted")
        return 1
    print(json.dumps(summary.model_dump(), sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
