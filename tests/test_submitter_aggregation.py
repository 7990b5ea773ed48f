"""Tests for grouping profiles by submitter."""
from app.registry.modules.profiles.service import ProfileRecord
from app.registry.modules.submitters.service import SubmitterAggregate, aggregate_submitters, list_submitters


def _rec(id, submitter_name, submitter_mobile, name="Aarav Sharma"):
    return ProfileRecord(
        id=id,
        name=name,
        relation="Son",
        dob="1990-05-14",
        nakshatra="Rohini",
        rashi="Vrishabh (Taurus)",
        contact_number="",
        occupation="Engineer",
        address="12 Temple Road, Udupi",
        submitter_name=submitter_name,
        submitter_mobile=submitter_mobile,
    )


def test_counts_per_pair_in_first_seen_order():
    records = [
        _rec(1, "Ravi Kumar", "9876543210"),
        _rec(2, "Lakshmi Rao", "9000000001"),
        _rec(3, "Ravi Kumar", "9876543210"),
    ]
    assert aggregate_submitters(records) == [
        SubmitterAggregate(name="Ravi Kumar", mobile="9876543210", record_count=2),
        SubmitterAggregate(name="Lakshmi Rao", mobile="9000000001", record_count=1),
    ]


def test_counts_sum_to_attributed_records():
    records = [
        _rec(1, "Ravi Kumar", "9876543210"),
        _rec(2, None, None),
        _rec(3, "Ravi Kumar", ""),
        _rec(4, "Lakshmi Rao", "9000000001"),
        _rec(5, "Lakshmi Rao", "9000000001"),
    ]
    aggs = aggregate_submitters(records)
    assert sum(a.record_count for a in aggs) == 3
    assert all(a.record_count >= 1 for a in aggs)


def test_pairs_are_trimmed_but_not_normalized():
    records = [
        _rec(1, "Ravi Kumar ", " 9876543210"),
        _rec(2, "Ravi Kumar", "9876543210"),
        _rec(3, "Ravi Kumar", "+91 98765 43210"),
    ]
    aggs = aggregate_submitters(records)
    assert [(a.mobile, a.record_count) for a in aggs] == [("9876543210", 2), ("+91 98765 43210", 1)]


def test_same_mobile_different_names_are_separate():
    aggs = aggregate_submitters([_rec(1, "Ravi Kumar", "9876543210"), _rec(2, "Ravi K", "9876543210")])
    assert len(aggs) == 2


def test_empty_input():
    assert aggregate_submitters([]) == []


def test_list_submitters_reads_store(sql_store):
    base = {
        "relation": "Son",
        "dob": "1990-05-14",
        "nakshatra": "Rohini",
        "rashi": "Vrishabh (Taurus)",
        "occupation": "Engineer",
        "address": "12 Temple Road, Udupi",
    }
    sql_store.insert(
        "profiles",
        [
            {**base, "name": "Aarav", "submitter_name": "Ravi Kumar", "submitter_mobile": "9876543210"},
            {**base, "name": "Diya", "submitter_name": "Ravi Kumar", "submitter_mobile": "9876543210"},
            {**base, "name": "Old Entry"},
        ],
    )
    assert list_submitters(sql_store) == [SubmitterAggregate(name="Ravi Kumar", mobile="9876543210", record_count=2)]
