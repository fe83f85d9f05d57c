from retry_ledger import RetryLedger

from conftest import upstream_error


def test_add_starts_at_zero(ledger, datastore):
    record_id = ledger.add("S1-2", "register", "timeout")

    entry = datastore.collections["retry"][record_id]
    assert entry["retry_count"] == 0
    assert entry["serial"] == "S1-2"
    assert entry["timestamp"]


def test_add_failure_returns_none_and_logs(ledger, datastore):
    datastore.fail[("create", "retry")] = upstream_error("down")

    assert ledger.add("S1", "register", "timeout") is None
    assert [e["error_message"] for e in datastore.records("logs")] == ["Retry save error:"]


def test_record_failure_bumps_and_patches(ledger, datastore):
    ledger.add("S1", "register", "first")
    entry = ledger.pending()[0]

    assert ledger.record_failure(entry, "second")

    stored = datastore.collections["retry"][entry.id]
    assert stored["retry_count"] == 1
    assert stored["error_message"] == "second"


def test_exhausted_at_ceiling(datastore, events):
    ledger = RetryLedger(datastore, events, max_retries=5)
    ledger.add("S1", "register", "x")
    entry = ledger.pending()[0]

    entry.retry_count = 4
    assert not ledger.exhausted(entry)
    entry.retry_count = 5
    assert ledger.exhausted(entry)


def test_resolve_deletes(ledger, datastore):
    ledger.add("S1", "register", "x")

    assert ledger.resolve(ledger.pending()[0])
    assert datastore.records("retry") == []


def test_event_log_never_raises(events, datastore):
    datastore.fail[("create", "logs")] = upstream_error("down")

    assert events.record("Something broke:", "details", uid=4) is False


def test_event_log_suffixes_uid(events, datastore):
    events.record("MCRM bonus API error:", "500", uid=7)

    assert datastore.records("logs")[0]["error_message"] == "MCRM bonus API error: UID: 7"
