import argparse
import json
from pathlib import Path

from jobboard.jobcrawl.db import JobDB, JobFilter
from jobboard.jobcrawl.errors import InvalidQueryError
from jobboard.jobcrawl.models import SearchQuery
from jobboard.jobcrawl.search import SearchQueryEngine
from jobboard.jobcrawl.settings import load_settings


def _db(args) -> JobDB:
    return JobDB(args.db or load_settings().db_path)

def cmd_search(args):
    query = SearchQuery(page=args.page, limit=args.limit, keyword=args.keyword, location=args.location, job_type=args.job_type)
    result = SearchQueryEngine(_db(args)).search(query)
    if args.json:
        print(json.dumps(result.model_dump(by_alias=True), ensure_ascii=False, indent=2))
        return
    print(f"total={result.total} page={result.page}/{result.total_pages} limit={result.limit}")
    for j in result.data:
        print(f"{j.job_type}\t{j.title} - {j.company}\t{j.location}\t{j.link}")

def cmd_show(args):
    job = _db(args).fetch_by_link(args.link)
    if job is None:
        print(f"Not found: {args.link}")
        return 1
    for k, v in job.model_dump().items():
        print(f"{k}: {v}")

def cmd_stats(args):
    db = _db(args)
    print(f"total: {db.count()}")
    for jt in load_settings().default_job_types:
        print(f"  job_type {jt}: {db.count(JobFilter(job_type=jt))}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser("job cli")
    ap.add_argument('--db', type=Path, help='SQLite file (default from settings)')
    sub = ap.add_subparsers(dest='cmd', required=True)

    sp = sub.add_parser('search')
    sp.add_argument('--page', type=int, default=1)
    sp.add_argument('--limit', type=int, default=10)
    sp.add_argument('--keyword')
    sp.add_argument('--location')
    sp.add_argument('--job-type')
    sp.add_argument('--json', action='store_true', help='Print the full result envelope as JSON')
    sp.set_defaults(func=cmd_search)

    shp = sub.add_parser('show')
    shp.add_argument('link')
    shp.set_defaults(func=cmd_show)

    stp = sub.add_parser('stats')
    stp.set_defaults(func=cmd_stats)
    return ap


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        return args.func(args) or 0
    except InvalidQueryError as e:
        ap.error(str(e))


if __name__ == '__main__':
    raise SystemExit(main())
