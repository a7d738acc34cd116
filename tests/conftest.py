import os
import tempfile

# settings and the default engine are built at import time
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(tempfile.gettempdir(), "ipd_billing_default.db"))
os.environ.setdefault("STORAGE_DIR", tempfile.mkdtemp(prefix="ipd_billing_media_"))

import pytest
from fastapi.testclient import TestClient

from ipd_billing.api.deps import get_session_factory
from ipd_billing.db.init_db import init_db
from ipd_billing.db.session import make_engine, make_session_factory
from ipd_billing.services.admissions import create_admission
from ipd_billing.services.sequence_allocator import SequenceAllocator


@pytest.fixture
def session_factory(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'billing.db'}")
    init_db(eng)
    yield make_session_factory(eng)
    eng.dispose()


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def allocator(session_factory):
    return SequenceAllocator(session_factory)


@pytest.fixture
def admission(db, allocator):
    return create_admission(db, allocator, patient_name="Ravi Kumar")


@pytest.fixture
def client(session_factory):
    from ipd_billing.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
