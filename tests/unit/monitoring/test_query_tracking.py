from src.monitoring.application.query_tracking import (
    RequestQueryStats,
    begin_request,
    count_query,
    current_stats,
    finish_request,
)


def test_queries_outside_a_request_are_ignored():
    count_query(5.0)
    assert current_stats() is None


def test_request_scope_counts_queries():
    token = begin_request()
    count_query(2.0)
    count_query(4.5)
    assert current_stats().count == 2

    stats = finish_request(token, max_queries=50, log_totals=False)

    assert stats.count == 2
    assert stats.avg_ms == 3.25
    assert current_stats() is None


def test_request_over_budget_still_returns_stats():
    token = begin_request()
    for _ in range(3):
        count_query(1.0)
    stats = finish_request(token, max_queries=2)
    assert stats.count == 3


def test_average_of_empty_request():
    assert RequestQueryStats().avg_ms == 0.0
