"""Filtered, paginated read view over stored postings.

Filter composition:
  - keyword  -> title OR company contains keyword (case-insensitive)
  - location -> location contains value (case-insensitive)
  - job_type -> exact equality
All present conditions are AND-ed. Pagination is skip=(page-1)*limit, take=limit;
total and total_pages come from an unpaginated count under the same filter.
"""
from __future__ import annotations
import math
from .db import JobDB, JobFilter
from .errors import InvalidQueryError
from .models import SearchQuery, SearchResult

# keeps skip=(page-1)*limit inside SQLite integer range
MAX_PAGE = 1_000_000
MAX_LIMIT = 1000


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if total > 0 else 0


def validate_query(query: SearchQuery):
    errors = []
    if query.page < 1:
        errors.append("page must be >= 1")
    elif query.page > MAX_PAGE:
        errors.append(f"page must be <= {MAX_PAGE}")
    if query.limit < 1:
        errors.append("limit must be >= 1")
    elif query.limit > MAX_LIMIT:
        errors.append(f"limit must be <= {MAX_LIMIT}")
    if errors:
        raise InvalidQueryError(", ".join(errors))


class SearchQueryEngine:
    def __init__(self, db: JobDB):
        self.db = db

    def search(self, query: SearchQuery) -> SearchResult:
        validate_query(query)
        flt = JobFilter(keyword=query.keyword, location=query.location, job_type=query.job_type)
        skip = (query.page - 1) * query.limit
        data = self.db.find(flt, skip=skip, take=query.limit)
        total = self.db.count(flt)
        return SearchResult(
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=total_pages(total, query.limit),
            data=data,
        )
