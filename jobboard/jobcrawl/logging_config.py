from __future__ import annotations
import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
import json
from datetime import datetime, timezone

LOG_DIR = Path(__file__).resolve().parent.parent / 'logs'

STRUCTURED_LOG_FILE = LOG_DIR / 'crawler.events.jsonl'

_DEF_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def _file_logs_disabled() -> bool:
    return bool(os.getenv('JOBBOARD_DISABLE_FILE_LOGS'))

def _events_disabled() -> bool:
    return bool(os.getenv('JOBBOARD_DISABLE_EVENTS'))

def setup_logging(debug: bool = False):
    root = logging.getLogger()
    if root.handlers:
        # already configured (uvicorn, pytest)
        return
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    if not _file_logs_disabled():
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        # human readable rotating log
        fh = RotatingFileHandler(LOG_DIR / 'crawler.log', maxBytes=1_000_000, backupCount=5, encoding='utf-8')
        fh.setFormatter(logging.Formatter(_DEF_FORMAT))
        root.addHandler(fh)
    ch = logging.StreamHandler()
    ch.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    ch.setLevel(logging.DEBUG if debug else logging.INFO)
    root.addHandler(ch)
    logging.getLogger('playwright').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def log_event(event: str, **fields):
    """Append a structured JSON event line."""
    if _events_disabled():
        return
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with STRUCTURED_LOG_FILE.open('a', encoding='utf-8') as f:
            rec = {'ts': datetime.now(timezone.utc).isoformat(timespec='seconds'), 'event': event}
            rec.update(fields)
            f.write(json.dumps(rec, ensure_ascii=False) + '\n')
    except OSError:
        logging.getLogger(__name__).debug('Failed to write structured log line', exc_info=True)
