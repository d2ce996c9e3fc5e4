import os
import sys
import random
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "tracker_test.db"
    # Point tracker to this temp DB
    os.environ["TRACKER_DB_PATH"] = str(path)
    from tracker.logs import ensure_log_schema
    from tracker.services.parcel_svc import ensure_parcel_schema
    ensure_parcel_schema()
    ensure_log_schema()
    return str(path)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("TRACKER_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in ("parcel", "operation_log"):
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield


@pytest.fixture()
def store(tmp_db_path):
    from tracker.db import get_conn
    from tracker.repository.parcel_repo import ParcelStore
    with get_conn() as conn:
        yield ParcelStore(conn)


def rng_seed() -> int:
    # TRACKER_TEST_SEED replays a failure, 0 included
    env_seed = os.environ.get("TRACKER_TEST_SEED")
    if env_seed is not None:
        return int(env_seed)
    return random.SystemRandom().randrange(2**32)


@pytest.fixture()
def rng():
    # One generator per test
    seed = rng_seed()
    print(f"TRACKER_TEST_SEED={seed}")
    return random.Random(seed)
