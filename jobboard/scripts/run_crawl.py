import argparse
import asyncio
import dataclasses
import json
import logging
import signal
from pathlib import Path

from jobboard.jobcrawl.db import JobDB
from jobboard.jobcrawl.errors import FatalSessionError
from jobboard.jobcrawl.logging_config import setup_logging, log_event
from jobboard.jobcrawl.orchestrator import crawl
from jobboard.jobcrawl.settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("run_crawl", description="Crawl listing pages and persist job postings")
    ap.add_argument('--job-type', action='append', dest='job_types', help='Job type code to crawl (repeatable; default from settings)')
    ap.add_argument('--workers', type=int, help='Concurrent detail fetches (default from settings)')
    ap.add_argument('--max-pages', type=int, help='Override listing page cap')
    ap.add_argument('--headed', action='store_true', help='Show the browser window')
    ap.add_argument('--db', type=Path, help='SQLite file (default from settings)')
    ap.add_argument('--out', type=Path, help='Also write crawled records as JSON to this file')
    ap.add_argument('--debug', action='store_true', help='Enable debug logging')
    return ap


async def _run(args, settings, db):
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    try:
        # Ctrl+C stops scheduling new pages; finished records are kept
        loop.add_signal_handler(signal.SIGINT, cancel.set)
    except NotImplementedError:  # pragma: no cover - Windows
        pass
    return await crawl(settings, db, args.job_types, cancel=cancel, max_workers=args.workers)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)
    logger = logging.getLogger('crawler')
    settings = load_settings()
    overrides = {}
    if args.headed:
        overrides['headless'] = False
    if args.max_pages:
        overrides['max_list_pages'] = args.max_pages
    if args.db:
        overrides['db_path'] = args.db
    if overrides:
        settings = dataclasses.replace(settings, **overrides)
    db = JobDB(settings.db_path)
    try:
        records, stats = asyncio.run(_run(args, settings, db))
    except FatalSessionError as e:
        logger.error(f"Cannot start browser: {e}")
        log_event('error', stage='launch', message=str(e))
        return 2
    if args.out:
        args.out.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(by_alias=True) for r in records]
        args.out.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding='utf-8')
    logger.info(f"Run complete discovered={stats.discovered} extracted={stats.extracted} failed={stats.failed} cancelled={stats.cancelled} stored_total={db.count()}")
    return 130 if stats.cancelled else 0


if __name__ == '__main__':
    raise SystemExit(main())
