from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from namebridge.app import (
    backfill_objects,
    backup_snapshot,
    ingest_feed,
    match_feeds,
    rebuild_snapshot,
    reconcile_views,
    registry_stats,
)
from namebridge.common import configure_logging
from namebridge.config import BackfillConfig, get_backfill_config
from namebridge.domain.consistency import ReconcileStatus
from namebridge.domain.workflows import Abandon, PromoteVariant, UseManualPrimary

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from namebridge.domain.workflows import DisambiguationChoice, DuplicateKeyConflict

log = logging.getLogger(__name__)

EXIT_STOPPED = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Maintain the canonical identity registry")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reconcile", help="Check and repair the three remote views")

    backfill = subparsers.add_parser("backfill", help="Write missing per-identity objects")
    backfill.add_argument("--chunk-size", type=int, help="Identities per run (defaults to config)")
    backfill.add_argument("--concurrency", type=int, help="Parallel writes (defaults to config)")
    backfill.add_argument(
        "--no-resume",
        action="store_true",
        help="Ignore saved progress (existing objects still count as done)",
    )
    backfill.add_argument("--reset", action="store_true", help="Clear saved progress first")

    subparsers.add_parser("backup", help="Copy the bulk snapshot to the backup object")

    rebuild = subparsers.add_parser(
        "rebuild-snapshot", help="Rebuild the bulk snapshot from per-identity objects"
    )
    rebuild.add_argument("--no-backup", action="store_true", help="Skip the snapshot backup")

    subparsers.add_parser("stats", help="Summarise the registry held in the snapshot")

    match = subparsers.add_parser("match", help="Match two JSON Lines feeds without writing")
    match.add_argument("records", type=Path, help="Feed of records to link")
    match.add_argument("targets", type=Path, help="Feed of records to link against")

    ingest = subparsers.add_parser("ingest", help="Fold a JSON Lines feed into the registry")
    ingest.add_argument("feed", type=Path, help="Feed of source records")
    ingest.add_argument(
        "--no-prompt",
        action="store_true",
        help="Fail on duplicate keys instead of asking on the console",
    )

    return parser.parse_args(list(argv))


def _backfill_config(args: argparse.Namespace) -> BackfillConfig:
    base = get_backfill_config()
    chunk_size = args.chunk_size if args.chunk_size is not None else base.chunk_size
    concurrency = args.concurrency if args.concurrency is not None else base.concurrency
    if chunk_size < 1 or concurrency < 1:
        raise ValueError("--chunk-size and --concurrency must be positive")
    return BackfillConfig(
        chunk_size=chunk_size,
        concurrency=concurrency,
        checkpoint_every=base.checkpoint_every,
    )


def _validate_paths(args: argparse.Namespace) -> None:
    for name in ("records", "targets", "feed"):
        path: Path | None = getattr(args, name, None)
        if path is not None and not path.is_file():
            raise ValueError(f"No such feed file: {path}")


class ConsoleDisambiguator:
    """Ask an operator on stdin how to resolve a duplicate key."""

    def __init__(self, ask: Callable[[str], str] = input) -> None:
        self._ask = ask

    async def __call__(self, conflict: DuplicateKeyConflict) -> DisambiguationChoice | None:
        prompt = self._prompt(conflict)
        answer = (await asyncio.to_thread(self._ask, prompt)).strip()
        return parse_choice(answer)

    @staticmethod
    def _prompt(conflict: DuplicateKeyConflict) -> str:
        variants = ", ".join(conflict.promotable_values) or "(none)"
        return (
            f"\nDuplicate {conflict.key!r} owned by {conflict.owner_key!r} "
            f"(attempt {conflict.attempt}).\n"
            f"  existing: {conflict.existing.aliases.all_values()}\n"
            f"  incoming variants: {variants}\n"
            "  [m <name>] manual primary, [p <variant>] promote variant, [a] abandon: "
        )


def parse_choice(answer: str) -> DisambiguationChoice | None:
    command, _, value = answer.partition(" ")
    value = value.strip()
    match command.lower():
        case "m" if value:
            return UseManualPrimary(value)
        case "p" if value:
            return PromoteVariant(value)
        case "a":
            return Abandon()
        case _:
            return None


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        _validate_paths(parsed_args)
        backfill = _backfill_config(parsed_args) if parsed_args.command == "backfill" else None
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        exit_code = _run(parsed_args, backfill)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


def _run(args: argparse.Namespace, backfill: BackfillConfig | None) -> int:
    if args.command == "reconcile":
        report = reconcile_views()
        log.info(
            "Reconcile %s: snapshot=%d folder=%d index=%d repairs=%d conflicts=%d unreadable=%d",
            report.status,
            report.snapshot_count,
            report.folder_count,
            report.index_count,
            report.repairs,
            len(report.variant_conflicts),
            len(report.unreadable_objects),
        )
        if report.status is ReconcileStatus.STOPPED:
            log.error("%s (missing: %s)", report.message, ", ".join(report.missing_objects))
            return EXIT_STOPPED
    elif args.command == "backfill":
        result = backfill_objects(backfill=backfill, resume=not args.no_resume, reset=args.reset)
        log.info(
            "Backfill: processed=%d failed=%d remaining=%d of %d",
            result.processed,
            len(result.failed),
            result.remaining,
            result.total,
        )
        if not result.success:
            return 1
    elif args.command == "backup":
        location = backup_snapshot()
        log.info("Snapshot backed up to %s", location)
    elif args.command == "rebuild-snapshot":
        snapshot = rebuild_snapshot(backup_first=not args.no_backup)
        log.info("Snapshot rebuilt with %d identities", snapshot.count)
    elif args.command == "stats":
        stats = registry_stats()
        log.info(
            "Registry: identities=%d homonyms=%d synonyms=%d candidates=%d variants=%d",
            stats.identities,
            stats.homonyms,
            stats.synonyms,
            stats.candidates,
            stats.variants,
        )
    elif args.command == "match":
        matching = match_feeds(args.records, args.targets)
        log.info("Matching summary: %s", matching.summary())
    elif args.command == "ingest":
        disambiguate = None if args.no_prompt else ConsoleDisambiguator()
        ingest = ingest_feed(args.feed, disambiguate=disambiguate)
        log.info("Ingest summary: %s", ingest.summary())
    else:
        raise ValueError(f"Unsupported command: {args.command}")
    return 0


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console-script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
