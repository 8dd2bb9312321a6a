import sqlite3
from jobboard.jobcrawl.db import JobDB, JobFilter, COLUMNS
from jobboard.jobcrawl.models import JobRecord


def make_job(i, **kw):
    base = dict(link=f'https://jobs.test/{i}', job_type='1', title=f'Engineer {i}', company='Acme', location='Hà Nội')
    base.update(kw)
    return JobRecord(**base)


def test_upsert_twice_keeps_one_row_with_latest_values(db):
    db.upsert(make_job(1, title='Old', salary='10 triệu'))
    db.upsert(make_job(1, title='New', salary=''))
    rows = db.fetch_all()
    assert len(rows) == 1
    assert rows[0].title == 'New'
    assert rows[0].salary == ''


def test_upsert_is_idempotent(db):
    job = make_job(1, benefit='<p>Bảo hiểm</p>')
    db.upsert(job)
    db.upsert(job)
    assert db.count() == 1
    assert db.fetch_by_link(job.link) == job


def test_upsert_keeps_original_position(db):
    db.upsert_jobs([make_job(1), make_job(2), make_job(3)])
    db.upsert(make_job(1, title='Updated'))
    assert [j.link for j in db.find()] == [f'https://jobs.test/{i}' for i in (1, 2, 3)]


def test_find_skip_take(db):
    db.upsert_jobs([make_job(i) for i in range(7)])
    page = db.find(JobFilter(), skip=5, take=5)
    assert [j.link for j in page] == ['https://jobs.test/5', 'https://jobs.test/6']
    assert db.find(JobFilter(), skip=10, take=5) == []


def test_count_matches_unpaginated_find(db):
    db.upsert_jobs([make_job(i, job_type='1' if i % 2 else '2') for i in range(9)])
    flt = JobFilter(job_type='1')
    assert db.count(flt) == len(db.find(flt)) == 4


def test_filter_case_insensitive_unicode(db):
    db.upsert_jobs([
        make_job(1, location='TP. Hồ Chí Minh'),
        make_job(2, location='Hà Nội'),
        make_job(3, location='ĐÀ NẴNG'),
    ])
    assert [j.link for j in db.find(JobFilter(location='hồ chí'))] == ['https://jobs.test/1']
    assert [j.link for j in db.find(JobFilter(location='đà nẵng'))] == ['https://jobs.test/3']


def test_empty_filter_sql():
    assert JobFilter().to_sql() == ('', [])
    where, params = JobFilter(keyword='x', location='y', job_type='1').to_sql()
    assert where.count(' AND ') == 2
    assert params == ['x', 'x', 'y', '1']


def test_missing_columns_added_on_open(tmp_path):
    db_path = tmp_path / 'legacy.sqlite'
    with sqlite3.connect(db_path) as conn:
        conn.execute("CREATE TABLE jobs (link TEXT PRIMARY KEY, job_type TEXT, title TEXT)")
        conn.execute("INSERT INTO jobs VALUES ('https://jobs.test/old', '1', 'Legacy')")
    db = JobDB(db_path)
    with sqlite3.connect(db_path) as conn:
        cols = [r[1] for r in conn.execute('PRAGMA table_info(jobs)')]
    assert set(COLUMNS) <= set(cols)
    old = db.fetch_by_link('https://jobs.test/old')
    assert old.title == 'Legacy'
    assert old.contact_phone == ''


def test_creates_parent_directory(tmp_path):
    db = JobDB(tmp_path / 'nested' / 'dir' / 'jobs.sqlite')
    db.upsert(make_job(1))
    assert (tmp_path / 'nested' / 'dir' / 'jobs.sqlite').exists()
