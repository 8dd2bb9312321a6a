import textwrap
from pathlib import Path
from jobboard.jobcrawl.settings import load_settings


def _runtime(tmp_path: Path, content: str) -> Path:
    p = tmp_path / 'runtime.yml'
    p.write_text(textwrap.dedent(content), encoding='utf-8')
    return p


def test_defaults_from_packaged_runtime(monkeypatch):
    for name in ('JOBBOARD_MAX_LIST_PAGES', 'JOBBOARD_MAX_WORKERS', 'JOBBOARD_DEFAULT_JOB_TYPES', 'JOBBOARD_RUNTIME_FILE'):
        monkeypatch.delenv(name, raising=False)
    s = load_settings(reload=True)
    assert s.max_list_pages == 200
    assert s.max_workers == 1
    assert s.default_job_types == ('1', '2')
    assert s.list_timeout_ms == 8000
    assert s.detail_timeout_ms == 10000
    assert s.listing_url('2', 7) == f"{s.base_url}?job_type=2&page=7"


def test_runtime_file_then_env_overlay(monkeypatch, tmp_path):
    f = _runtime(tmp_path, """
    max_list_pages: 5
    max_workers: 4
    default_job_types: ["3", "4"]
    headless: false
    """)
    monkeypatch.setenv('JOBBOARD_RUNTIME_FILE', str(f))
    monkeypatch.delenv('JOBBOARD_MAX_WORKERS', raising=False)
    monkeypatch.setenv('JOBBOARD_MAX_LIST_PAGES', '9')
    s = load_settings(reload=True)
    assert s.max_list_pages == 9
    assert s.max_workers == 4
    assert s.default_job_types == ('3', '4')
    assert s.headless is False
    monkeypatch.delenv('JOBBOARD_RUNTIME_FILE')
    load_settings(reload=True)


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv('JOBBOARD_MAX_WORKERS', 'lots')
    monkeypatch.setenv('JOBBOARD_DEFAULT_JOB_TYPES', ' 1, ,2 ')
    s = load_settings(reload=True)
    assert s.max_workers == 1
    assert s.default_job_types == ('1', '2')


def test_worker_count_floor(monkeypatch):
    monkeypatch.setenv('JOBBOARD_MAX_WORKERS', '0')
    assert load_settings(reload=True).max_workers == 1
