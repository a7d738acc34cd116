from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest

from ipd_billing.core.errors import AllocationFailure, InvalidInput
from ipd_billing.models.sequence import SequenceCounter
from ipd_billing.services.sequence_allocator import (
    SequenceAllocator,
    date_key_for,
    format_identifier,
)


def test_counts_up_per_date(allocator):
    assert [allocator.next_for_date("2026-10-19") for _ in range(3)] == [1, 2, 3]
    assert allocator.next_for_date("2026-10-20") == 1
    assert allocator.next_for_date("2026-10-19") == 4


def test_series_are_independent(allocator):
    assert allocator.next_for_date("2026-10-19", series="UHID") == 1
    assert allocator.next_for_date("2026-10-19", series="IPD") == 1
    assert allocator.next_for_date("2026-10-19", series="uhid") == 2


def test_concurrent_requests_get_distinct_numbers(allocator):
    n = 24
    with ThreadPoolExecutor(max_workers=8) as pool:
        got = list(pool.map(lambda _: allocator.next_for_date("2026-10-21"), range(n)))
    assert sorted(got) == list(range(1, n + 1))


def test_counter_row_tracks_last_issued(allocator, db):
    for _ in range(5):
        allocator.next_for_date("2026-10-19")
    row = db.query(SequenceCounter).filter_by(series="UHID", date_key="2026-10-19").one()
    assert row.value == 5


@pytest.mark.parametrize("series, key", [("", "2026-10-19"), ("bad series!", "2026-10-19"),
                                         ("UHID", ""), ("UHID", "x" * 40)])
def test_invalid_keys(allocator, series, key):
    with pytest.raises(InvalidInput):
        allocator.next_for_date(key, series=series)


def test_storage_failure_is_allocation_failure(tmp_path):
    from ipd_billing.db.session import make_engine, make_session_factory

    # no tables created
    eng = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    broken = SequenceAllocator(make_session_factory(eng))
    with pytest.raises(AllocationFailure):
        broken.next_for_date("2026-10-19")
    eng.dispose()


def test_format_identifier():
    assert format_identifier("MG", date(2026, 7, 6), 1, width=5) == "MG-060726-00001"
    assert format_identifier("IPD", date(2026, 10, 19), 12) == "IPD-191026-0012"
    assert format_identifier("IPD", date(2026, 10, 19), 123456) == "IPD-191026-123456"
    with pytest.raises(InvalidInput):
        format_identifier("IPD", date(2026, 10, 19), 0)


def test_date_key_uses_hospital_timezone():
    # 20:00 UTC is already the next day in Asia/Kolkata
    assert date_key_for(datetime(2026, 10, 19, 20, 0)) == "2026-10-20"
    assert date_key_for(date(2026, 10, 19)) == "2026-10-19"


def test_next_identifier(allocator):
    d = date(2026, 10, 19)
    assert allocator.next_uhid(d) == "MG-191026-00001"
    assert allocator.next_uhid(d) == "MG-191026-00002"
    assert allocator.next_ipd_number(d) == "IPD-191026-0001"
