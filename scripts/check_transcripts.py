#!/usr/bin/env python3
"""
Development script to inspect video records and their transcripts.

Lists the most recent video records with processing status, transcript
length, segment count and the last error, grouped by conversation.

Usage:
    python scripts/check_transcripts.py [--conversation ID] [--limit N]

Options:
    --conversation  Only show videos of one conversation
    --limit         Number of records to show (default 50)
    --full          Print full transcripts instead of a preview
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass
from itertools import groupby

from src.commons.settings import get_settings
from src.domain.models.video import VideoRecord
from src.infrastructure.factory import get_factory

PREVIEW_CHARS = 120


@dataclass
class CheckArgs:
    """Parsed command line arguments."""

    conversation_id: str | None
    limit: int
    full: bool


def parse_args() -> CheckArgs:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Inspect video records and transcripts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--conversation", help="Only show one conversation")
    parser.add_argument("--limit", type=int, default=50, help="Records to show")
    parser.add_argument(
        "--full", action="store_true", help="Print full transcripts"
    )
    args = parser.parse_args()
    return CheckArgs(
        conversation_id=args.conversation,
        limit=args.limit,
        full=args.full,
    )


def print_record(record: VideoRecord, full: bool) -> bool:
    """Print one record; return whether it carries a transcript."""
    print(f"  Video: {record.id}")
    print(f"     Duration: {record.duration_seconds or 'unknown'}s")
    print(f"     Created: {record.created_at}")
    print(f"     Status: {record.processing_status.value}")
    print(f"     Has Transcript: {bool(record.transcript)}")

    if record.transcript:
        text = record.transcript
        if not full and len(text) > PREVIEW_CHARS:
            text = text[:PREVIEW_CHARS] + "..."
        print(f"     Transcript Length: {len(record.transcript)} chars")
        print(f'     Transcript: "{text}"')
        if record.transcript_segments:
            print(f"     Segments: {len(record.transcript_segments)}")
        print(f"     Chunks: {record.chunk_count}")
        if record.processed_at:
            print(f"     Processed At: {record.processed_at}")

    if record.error_message:
        print(f"     Error: {record.error_message} ({record.error_at})")

    if record.is_expired:
        print(f"     Expired At: {record.expired_at}")

    print()
    return bool(record.transcript)


async def check_transcripts(args: CheckArgs) -> int:
    """Print records and return the number that carry a transcript."""
    settings = get_settings()
    factory = get_factory(settings)
    document_db = factory.get_document_db()

    filters = {}
    if args.conversation_id:
        filters["conversation_id"] = args.conversation_id

    collection = settings.document_db.collections.videos
    try:
        total = await document_db.count(collection, filters)
        docs = await document_db.find(
            collection,
            filters,
            limit=args.limit,
            sort=[("conversation_id", 1), ("created_at", -1)],
        )
    finally:
        await factory.close_all()

    records = [VideoRecord.model_validate(doc) for doc in docs]
    print(f"Showing {len(records)} of {total} video records\n")
    found = 0
    for conversation_id, group in groupby(records, key=lambda r: r.conversation_id):
        print(f"Conversation: {conversation_id}")
        for record in group:
            found += print_record(record, args.full)

    if not records:
        print("No video records found")
    return found


def main() -> None:
    """Main entry point."""
    args = parse_args()

    print("Checking for video transcripts...\n")
    try:
        found = asyncio.run(check_transcripts(args))
    except Exception as e:
        print(f"Error checking transcripts: {e}")
        sys.exit(1)

    if not found:
        print("No transcripts found in any videos")
    print("Check complete!")


if __name__ == "__main__":
    main()
