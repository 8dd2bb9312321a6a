"""Centralized settings with environment + runtime config overlay.
Provides typed accessors to avoid scattering magic numbers.
"""
from __future__ import annotations
from pathlib import Path
import os, yaml
from dataclasses import dataclass
from typing import Tuple

_RUNTIME_CACHE: dict | None = None

PACKAGE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = PACKAGE_DIR / 'config'

DEFAULT_BASE_URL = 'https://123job.vn/tuyen-dung'
DEFAULT_LIST_SELECTOR = '.job__list-item-title a'
DEFAULT_USER_AGENT = 'Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36'

def _load_runtime() -> dict:
    global _RUNTIME_CACHE
    if _RUNTIME_CACHE is None:
        cfg_file = Path(os.getenv('JOBBOARD_RUNTIME_FILE', CONFIG_DIR / 'runtime.yml'))
        if cfg_file.exists():
            try:
                _RUNTIME_CACHE = yaml.safe_load(cfg_file.read_text(encoding='utf-8')) or {}
            except yaml.YAMLError:
                _RUNTIME_CACHE = {}
        else:
            _RUNTIME_CACHE = {}
    return _RUNTIME_CACHE

def _raw(name: str):
    v = os.getenv(name)
    if v is not None:
        return v
    return _load_runtime().get(name.lower().removeprefix('jobboard_'))

def _env_float(name: str, default: float) -> float:
    v = _raw(name)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default

def _env_int(name: str, default: int) -> int:
    v = _raw(name)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default

def _env_str(name: str, default: str) -> str:
    v = _raw(name)
    return default if v is None else str(v)

def _env_bool(name: str, default: bool) -> bool:
    v = _raw(name)
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).lower() in ('1', 'true', 'yes', 'on')

def _env_list(name: str, default: str) -> Tuple[str, ...]:
    v = _raw(name)
    if v is None:
        v = default
    if isinstance(v, (list, tuple)):
        return tuple(str(x) for x in v)
    return tuple(p.strip() for p in str(v).split(',') if p.strip())

@dataclass(frozen=True)
class Settings:
    base_url: str
    list_selector: str
    list_timeout_ms: int
    detail_timeout_ms: int
    max_list_pages: int
    max_workers: int
    polite_min: float
    polite_max: float
    headless: bool
    user_agent: str
    default_job_types: Tuple[str, ...]
    db_path: Path

    def listing_url(self, job_type: str, page_index: int) -> str:
        return f"{self.base_url}?job_type={job_type}&page={page_index}"

def load_settings(reload: bool = False) -> Settings:
    global _RUNTIME_CACHE
    if reload:
        _RUNTIME_CACHE = None
    return Settings(
        base_url=_env_str('JOBBOARD_BASE_URL', DEFAULT_BASE_URL),
        list_selector=_env_str('JOBBOARD_LIST_SELECTOR', DEFAULT_LIST_SELECTOR),
        list_timeout_ms=_env_int('JOBBOARD_LIST_TIMEOUT_MS', 8000),
        detail_timeout_ms=_env_int('JOBBOARD_DETAIL_TIMEOUT_MS', 10000),
        max_list_pages=_env_int('JOBBOARD_MAX_LIST_PAGES', 200),
        max_workers=max(1, _env_int('JOBBOARD_MAX_WORKERS', 1)),
        polite_min=_env_float('JOBBOARD_POLITE_MIN', 0.5),
        polite_max=_env_float('JOBBOARD_POLITE_MAX', 1.5),
        headless=_env_bool('JOBBOARD_HEADLESS', True),
        user_agent=_env_str('JOBBOARD_USER_AGENT', DEFAULT_USER_AGENT),
        default_job_types=_env_list('JOBBOARD_DEFAULT_JOB_TYPES', '1,2'),
        db_path=Path(_env_str('JOBBOARD_DB_PATH', str(PACKAGE_DIR / 'data' / 'jobs.sqlite'))),
    )
