import logging

from http_activity_indicator.core.types import Operation, OperationHandle
from http_activity_indicator.services.activity_tracker import ActivityTracker
from http_activity_indicator.services.filters import FilterSet


def _collect(tracker):
    values = []
    tracker.status.subscribe(values.append)
    return values


def test_counts_pending_requests(tracker):
    first = tracker.start("GET", "/fake")
    second = tracker.start("GET", "/fake2")
    assert tracker.pending_count == 2

    tracker.end(first)
    assert tracker.pending_count == 1

    tracker.end(second)
    assert tracker.pending_count == 0


def test_status_emits_only_on_edges(tracker):
    values = _collect(tracker)
    a = tracker.start("GET", "/a")
    b = tracker.start("GET", "/b")
    tracker.end(a)
    tracker.end(b)
    # initial replay, busy edge, idle edge
    assert values == [False, True, False]


def test_late_subscriber_sees_busy_state(tracker):
    tracker.start("GET", "/fake")
    values = _collect(tracker)
    assert values == [True]
    assert tracker.is_busy


def test_not_included_urls_never_affect_count():
    tracker = ActivityTracker(FilterSet.from_patterns(included_url_patterns=[r"^/?included-url\w*"]))
    excluded = tracker.start("GET", "/non-included-url")
    included = tracker.start("GET", "/included-url")
    assert tracker.pending_count == 1

    tracker.end(excluded)
    assert tracker.pending_count == 1

    tracker.end(included)
    assert tracker.pending_count == 0


def test_filtered_urls_are_not_counted():
    tracker = ActivityTracker(FilterSet.from_patterns(url_patterns=[r"^/?excluded-url\w*"]))
    values = _collect(tracker)
    handle = tracker.start("GET", "/excluded-url")
    assert tracker.pending_count == 0
    assert not handle.counted
    tracker.end(handle)
    assert values == [False]


def test_end_twice_decrements_once(tracker):
    a = tracker.start("GET", "/a")
    tracker.start("GET", "/b")
    tracker.end(a)
    tracker.end(a)
    assert tracker.pending_count == 1


def test_unknown_handle_is_ignored(tracker):
    tracker.start("GET", "/a")
    stranger = OperationHandle(operation=Operation("GET", "/x"), counted=True)
    tracker.end(stranger)
    assert tracker.pending_count == 1


def test_start_time_decision_survives_filter_changes(tracker):
    counted = tracker.start("GET", "/api/a")
    tracker.set_filters(FilterSet.from_patterns(url_patterns=["/api"]))
    skipped = tracker.start("GET", "/api/b")
    assert tracker.pending_count == 1

    # filters changed again: the skipped request still must not decrement
    tracker.set_filters(FilterSet())
    tracker.end(skipped)
    assert tracker.pending_count == 1
    tracker.end(counted)
    assert tracker.pending_count == 0


def test_count_never_negative_for_random_sequences(tracker):
    handles = []
    for i in range(20):
        handles.append(tracker.start("GET", f"/r/{i}"))
        if i % 3 == 0:
            tracker.end(handles[i // 2])
        assert tracker.pending_count >= 0
    for handle in handles + handles:
        tracker.end(handle, success=False)
        assert tracker.pending_count >= 0
    assert tracker.pending_count == 0


def test_negative_count_is_clamped(tracker, caplog):
    handle = tracker.start("GET", "/a")
    tracker._pending_requests = 0
    with caplog.at_level(logging.WARNING):
        tracker.end(handle)
    assert tracker.pending_count == 0
    assert "clamping to zero" in caplog.text


def test_headers_are_copied_into_operation(tracker):
    headers = {"Accept": "text/plain"}
    handle = tracker.start("GET", "/a", headers)
    headers["X-Later"] = "1"
    assert "X-Later" not in handle.operation.headers
