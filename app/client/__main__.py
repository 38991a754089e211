"""Inspect or replay the offline mutation queue.

Usage:
    # Show pending writes:
    python -m app.client --queue-file ~/.slotbook/queue.json status

    # Replay them against the API:
    python -m app.client --base-url http://localhost:8000/api/v1 --token <jwt> flush

Defaults come from SLOTBOOK_API_URL, SLOTBOOK_TOKEN and SLOTBOOK_QUEUE_FILE.
"""

import argparse
import asyncio
import logging
import os
import sys

from app.client.api import ApiClient
from app.client.connectivity import ConnectivityMonitor
from app.client.queue import MutationQueue
from app.client.storage import JsonFileStorage
from app.client.sync import SyncCoordinator

DEFAULT_QUEUE_FILE = os.path.expanduser("~/.slotbook/queue.json")


def print_status(queue: MutationQueue) -> None:
    entries = queue.load()
    if not entries:
        print("No pending offline changes.")
        return
    print(f"\n{'Queued at':<28} {'Method':<8} {'Path':<40} {'Description'}")
    print("-" * 100)
    for entry in entries:
        print(f"{entry.created_at:<28} {entry.method:<8} {entry.path:<40} {entry.description}")
    print(f"\nTotal: {len(entries)} pending")


async def run_flush(queue: MutationQueue, base_url: str, token: str) -> int:
    monitor = ConnectivityMonitor(online=True)
    queue.monitor = monitor
    async with ApiClient(base_url, token=token, monitor=monitor) as api:
        coordinator = SyncCoordinator(api, queue, notify=lambda message, level: print(message))
        result = await coordinator.flush()
    print(f"synced={result.synced} dropped={result.dropped} pending={queue.pending_count}")
    if result.stopped_reason:
        print(f"stopped: {result.stopped_reason}")
    return 0 if queue.pending_count == 0 else 1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="python -m app.client", description="Slotbook offline queue tool")
    parser.add_argument("--queue-file", default=os.environ.get("SLOTBOOK_QUEUE_FILE", DEFAULT_QUEUE_FILE))
    parser.add_argument("--base-url", default=os.environ.get("SLOTBOOK_API_URL", "http://localhost:8000/api/v1"))
    parser.add_argument("--token", default=os.environ.get("SLOTBOOK_TOKEN", ""))
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("status", help="List pending offline changes")
    sub.add_parser("flush", help="Replay pending changes in order")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    queue = MutationQueue(JsonFileStorage(args.queue_file))

    if args.command == "status":
        print_status(queue)
        return 0
    if not args.token:
        print("ERROR: --token (or SLOTBOOK_TOKEN) is required to flush")
        return 2
    return asyncio.run(run_flush(queue, args.base_url, args.token))


if __name__ == "__main__":
    sys.exit(main())
