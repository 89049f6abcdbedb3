#!/usr/bin/env python3
"""
Biomarker Check Script

Shows stored biomarkers and processing status for lab results, and can
extract from a text file or backfill documents that never got biomarkers.

Usage:
    python scripts/check_biomarkers.py --db data/lab_results.db
    python scripts/check_biomarkers.py --db data/lab_results.db --lab-id 42
    python scripts/check_biomarkers.py --db data/lab_results.db --reprocess-missing --limit 20
    python scripts/check_biomarkers.py --text report.txt --no-llm
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from biomarker_ingestion import (
    BiomarkerExtractionService,
    LabStore,
    extract_biomarkers,
    reprocess_missing_biomarkers,
)
from biomarker_ingestion.config import logging_settings
from biomarker_ingestion.llm import create_client
from biomarker_ingestion.utils.logging import setup_logging


def show_lab_result(store: LabStore, lab_result_id: int):
    document = store.get_lab_result(lab_result_id)
    if document is None:
        print(f"Lab result {lab_result_id} not found")
        return

    status = store.get_status(lab_result_id)
    print(f"\n=== Lab result {lab_result_id}: {document['file_name']} ===")
    if status is None:
        print("  status: never processed")
    else:
        print(
            f"  status: {status['status']} | method: {status['extraction_method']} | "
            f"count: {status['biomarker_count']}"
        )
        if status["error_message"]:
            print(f"  error: {status['error_message']}")

    records = store.get_biomarkers(lab_result_id)
    for record in records:
        flag = f" [{record['status']}]" if record["status"] else ""
        print(
            f"  {record['name']:<22} {record['value']:>10} {record['unit']:<10}"
            f"{flag} ({record['extraction_method']}, {record['confidence']:.2f})"
        )

    summary = document["metadata"].get("biomarkers")
    if summary is None:
        print("  metadata: no biomarkers summary")
        return
    summarized = len(summary.get("parsedBiomarkers", []))
    marker = "OK" if summarized == len(records) else "MISMATCH"
    print(f"  metadata: {summarized} summarized vs {len(records)} stored [{marker}]")
    for error in summary.get("parsingErrors", []):
        print(f"  parsing error: {error}")


async def extract_file(path: Path, use_llm: bool):
    client = create_client() if use_llm else None
    try:
        result = await extract_biomarkers(path.read_text(encoding="utf-8"), llm_client=client)
    finally:
        if client is not None:
            await client.close()
    print(json.dumps(result.to_dict(), indent=2, default=str))


async def run_sweep(store: LabStore, limit, use_llm: bool):
    service = BiomarkerExtractionService(store=store, enable_llm=use_llm)
    try:
        summary = await reprocess_missing_biomarkers(service, limit=limit)
    finally:
        await service.close()
    print(json.dumps(summary, indent=2))
    return summary


def main():
    parser = argparse.ArgumentParser(description="Inspect and backfill extracted biomarkers")
    parser.add_argument("--db", type=str, help="Path to the lab results database")
    parser.add_argument("--lab-id", type=int, help="Show a single lab result")
    parser.add_argument("--text", type=str, help="Extract from a text file and print the result")
    parser.add_argument("--reprocess-missing", action="store_true",
                        help="Process documents with no biomarkers or a failed run")
    parser.add_argument("--limit", type=int, default=None, help="Max documents to reprocess")
    parser.add_argument("--no-llm", action="store_true", help="Disable model-assisted extraction")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    setup_logging(
        level="DEBUG" if args.verbose else logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=logging_settings.LOG_JSON,
    )

    if args.text:
        asyncio.run(extract_file(Path(args.text), use_llm=not args.no_llm))
        return

    store = LabStore(args.db) if args.db else LabStore()

    if args.reprocess_missing:
        summary = asyncio.run(run_sweep(store, args.limit, use_llm=not args.no_llm))
        if summary["failed"]:
            sys.exit(1)
        return

    ids = [args.lab_id] if args.lab_id is not None else store.list_lab_result_ids()
    if not ids:
        print("No lab results stored")
    for lab_result_id in ids:
        show_lab_result(store, lab_result_id)


if __name__ == "__main__":
    main()
