#!/usr/bin/env python3
"""
Command line interface for batched document reads.

    docbatch-get users/alice users/bob --project my-project

Prints one JSON object per requested path, in the order given.
"""
import argparse
import base64
import json
import logging
import signal
import sys
import threading
from datetime import datetime
from typing import List, Optional

from google.api_core import exceptions

from .client import DocumentClient
from .common.errors import (DocbatchError, ProtocolIntegrityError,
                            ValueDecodeError)
from .common.paths import DocumentRef
from .common.snapshot import DocumentSnapshot
from .config.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Global cancellation event for signal handling
cancellation_event = threading.Event()


def signal_handler(signum, frame):
    """Handle shutdown signals by setting cancellation event."""
    logger.info(f"Received signal {signum}. Cancelling fetch...")
    cancellation_event.set()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docbatch-get",
        description="Fetch documents with a single BatchGetDocuments call.",
    )
    parser.add_argument("paths", nargs="+", help="Relative document paths, e.g. users/alice")
    parser.add_argument("--project", help="GCP project id (default: from environment)")
    parser.add_argument("--database", help="Database id (default: (default))")
    parser.add_argument("--read-time", type=datetime.fromisoformat,
                        help="Read as of this ISO 8601 timestamp (must include a UTC offset)")
    parser.add_argument("--timeout", type=float, help="Deadline in seconds")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    return parser


def _json_default(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, DocumentRef):
        return value.path
    if hasattr(value, "latitude") and hasattr(value, "longitude"):
        return {"latitude": value.latitude, "longitude": value.longitude}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def snapshot_to_json(snapshot: DocumentSnapshot) -> str:
    return json.dumps(
        {
            "path": snapshot.reference.short_path,
            "exists": snapshot.exists,
            "read_time": snapshot.read_time,
            "update_time": snapshot.update_time,
            "data": snapshot.to_dict(),
        },
        default=_json_default,
        sort_keys=True,
    )


def main(argv: Optional[List[str]] = None, client: Optional[DocumentClient] = None) -> int:
    args = create_parser().parse_args(argv)
    configure_logging(args.log_level)

    if args.read_time is not None and args.read_time.tzinfo is None:
        logger.error("--read-time must include a UTC offset, e.g. 2024-01-01T00:00:00+00:00")
        return 2

    # a previous run in this process may have been interrupted
    cancellation_event.clear()
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    owns_client = client is None
    try:
        if client is None:
            client = DocumentClient(args.project, args.database)
        refs = [client.doc(path) for path in args.paths]
        snapshots = client.get_all(
            refs,
            read_time=args.read_time,
            timeout=args.timeout,
            cancel_event=cancellation_event,
        )
    except (ProtocolIntegrityError, ValueDecodeError) as e:
        logger.error(f"❌ Unusable BatchGetDocuments response: {e}")
        return 1
    except (DocbatchError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 2
    except exceptions.Cancelled:
        logger.warning("Fetch cancelled")
        return 130
    except exceptions.GoogleAPICallError as e:
        logger.error(f"❌ BatchGetDocuments failed: {e}")
        return 1
    finally:
        if owns_client and client is not None:
            client.close()

    for snapshot in snapshots:
        print(snapshot_to_json(snapshot))
    return 0


if __name__ == "__main__":
    sys.exit(main())
