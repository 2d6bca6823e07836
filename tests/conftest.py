import sys
from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from exam_runtime.services.progress_store import ProgressStore
from exam_runtime.storage.kv_store import InMemoryKeyValueStore
from fakes import FakeClock, FakeExamService, make_exam


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def progress_store(kv):
    return ProgressStore(kv)


@pytest.fixture
def exam():
    return make_exam()


@pytest.fixture
def exam_service(exam):
    return FakeExamService(exam)
