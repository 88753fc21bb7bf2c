"""Integration tests for alert persistence, email delivery, and the scheduled jobs"""

import json
import logging
from datetime import datetime, timezone
import httpx
import pytest
from refi_gateway.domain.models import RateData
from refi_gateway.infrastructure.clients.email import EmailClient, build_alert_html, build_alert_subject
from refi_gateway.infrastructure.clients.pmms import PMMSClient
from refi_gateway.infrastructure.database.repositories import AlertRepository, hash_email
from refi_gateway.infrastructure.rate_store import BUNDLED_RATES, RateStore, load_fallback_rates
from refi_gateway.jobs import check_alerts, fetch_rates
from refi_gateway.utils.date_utils import utc_now_iso

RESEND_URL = "https://resend.test/emails"
BASE_URL = "https://refi.test"


def make_email_client(handler, api_key: str = "re_test") -> EmailClient:
    client = EmailClient(
        api_key=api_key,
        api_url=RESEND_URL,
        from_email="alerts@refi.test",
        transport=httpx.MockTransport(handler),
    )
    client.backoff_base = 0
    return client


def test_hash_email_normalizes():
    assert hash_email(" Saver@Example.COM ") == hash_email("saver@example.com")
    assert len(hash_email("saver@example.com")) == 12


def test_repository_pending_excludes_notified_and_unsubscribed(db):
    repo = AlertRepository(db)
    pending = repo.create_alert("a@example.com", 0.06)
    notified = repo.create_alert("b@example.com", 0.06)
    unsubscribed = repo.create_alert("c@example.com", 0.06)
    repo.mark_notified(notified)
    unsubscribed.unsubscribed = True
    db.commit()

    assert [alert.id for alert in repo.list_pending()] == [pending.id]
    assert repo.get_by_token(notified.id).notified_at is not None
    assert repo.find_active_by_email("C@example.com") is None


def test_alert_email_content():
    html = build_alert_html("token-1", 0.0575, 0.056, BASE_URL)

    assert build_alert_subject(0.056) == "Mortgage rates hit 5.60%: your refinance alert triggered"
    assert "5.75%" in html
    assert f"{BASE_URL}/unsubscribe?token=token-1" in html


async def test_email_dry_run_without_api_key():
    calls = []
    client = make_email_client(lambda request: calls.append(request), api_key="")

    assert client.dry_run
    assert await client.send("a@example.com", "Subject", "<p>hi</p>") is True
    assert calls == []


async def test_email_sends_resend_payload():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "email-1"})

    ok = await make_email_client(handler).send("a@example.com", "Subject", "<p>hi</p>")

    assert ok is True
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"] == {
        "from": "alerts@refi.test",
        "to": "a@example.com",
        "subject": "Subject",
        "html": "<p>hi</p>",
    }


async def test_email_client_error_is_not_retried():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(422, json={"message": "invalid to"})

    assert await make_email_client(handler).send("bad", "Subject", "<p>hi</p>") is False
    assert calls["count"] == 1


async def test_email_server_error_retries_then_succeeds():
    responses = iter([httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"id": "email-1"})])

    assert await make_email_client(lambda request: next(responses)).send("a@example.com", "S", "<p></p>") is True


async def test_email_gives_up_after_max_retries():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("down")

    client = make_email_client(handler)
    assert await client.send("a@example.com", "S", "<p></p>") is False
    assert calls["count"] == client.max_retries


async def test_notify_alerts_sends_only_triggered(db):
    repo = AlertRepository(db)
    triggered = repo.create_alert("yes@example.com", 0.065)
    waiting = repo.create_alert("no@example.com", 0.055)
    db.commit()

    sent_to = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent_to.append(json.loads(request.content)["to"])
        return httpx.Response(200, json={"id": "email-1"})

    rates = RateData(fetched_at=utc_now_iso(), fixed_30yr=6.0, fixed_15yr=5.3)
    summary = await check_alerts.notify_alerts(db, rates, make_email_client(handler), BASE_URL, send_interval=0)

    assert (summary.eligible, summary.sent, summary.failed) == (1, 1, 0)
    assert sent_to == ["yes@example.com"]
    assert repo.get_by_token(triggered.id).notified_at is not None
    assert repo.get_by_token(waiting.id).notified_at is None


async def test_email_malformed_url_counts_as_failed_send():
    client = EmailClient(api_key="re_test", api_url="https://[::1/emails", from_email="alerts@refi.test")
    client.backoff_base = 0

    assert await client.send("a@example.com", "S", "<p></p>") is False


async def test_email_logs_hash_instead_of_address(caplog):
    caplog.set_level(logging.INFO)
    client = make_email_client(lambda request: httpx.Response(400), api_key="")

    await client.send("Saver@Example.com", "S", "<p></p>")

    record = next(r for r in caplog.records if r.getMessage().startswith("Dry run"))
    assert record.email_hash == hash_email("saver@example.com")
    assert not hasattr(record, "to")
    assert "Saver@Example.com" not in caplog.text


async def test_notify_alerts_leaves_failed_sends_pending(db):
    repo = AlertRepository(db)
    alert = repo.create_alert("yes@example.com", 0.065)
    db.commit()

    rates = RateData(fetched_at=utc_now_iso(), fixed_30yr=6.0, fixed_15yr=5.3)
    client = make_email_client(lambda request: httpx.Response(400))
    summary = await check_alerts.notify_alerts(db, rates, client, BASE_URL, send_interval=0)

    assert summary.failed == 1
    assert repo.get_by_token(alert.id).notified_at is None


def test_check_alerts_main(db, session_factory, tmp_path):
    store = RateStore(tmp_path / "rates.json")
    store.save(RateData(fetched_at=utc_now_iso(), fixed_30yr=6.0, fixed_15yr=5.3))
    AlertRepository(db).create_alert("yes@example.com", 0.065)
    db.commit()

    exit_code = check_alerts.main(
        store=store,
        email_client=make_email_client(lambda request: None, api_key=""),
        session_factory=session_factory,
        send_interval=0,
    )

    assert exit_code == 0
    assert AlertRepository(db).list_pending() == []


def test_check_alerts_main_without_rate_file(tmp_path):
    store = RateStore(tmp_path / "missing.json")
    assert check_alerts.main(store=store, email_client=EmailClient(api_key="")) == 1


def test_rate_store_round_trip_and_fallback(tmp_path):
    store = RateStore(tmp_path / "data" / "rates.json")
    assert store.load() is None
    assert load_fallback_rates(store) == BUNDLED_RATES

    rates = RateData(fetched_at="2026-10-16T16:00:00.000Z", fixed_30yr=6.2, fixed_15yr=5.4)
    store.save(rates)
    assert load_fallback_rates(store) == rates

    store.path.write_text("{not json", encoding="utf-8")
    assert store.load() is None


def test_fetch_rates_main_writes_file(tmp_path, pmms_html, pmms_transport):
    store = RateStore(tmp_path / "rates.json")
    store.save(BUNDLED_RATES)
    client = PMMSClient(url="https://pmms.test/pmms", timeout=1.0, transport=pmms_transport(pmms_html("6.10", "5.40")))

    assert fetch_rates.main(store=store, client=client) == 0
    saved = store.load()
    assert (saved.fixed_30yr, saved.fixed_15yr) == (6.10, 5.40)


@pytest.mark.parametrize(
    "failure",
    [
        {"html": "<p>30-Year 10.50%</p><p>15-Year 5.40%</p>"},
        {"status_code": 503},
        {"error": httpx.ConnectError("down")},
    ],
)
def test_fetch_rates_main_keeps_file_on_failure(tmp_path, pmms_transport, failure):
    store = RateStore(tmp_path / "rates.json")
    store.save(BUNDLED_RATES)
    client = PMMSClient(url="https://pmms.test/pmms", timeout=1.0, transport=pmms_transport(**failure))

    assert fetch_rates.main(store=store, client=client) == 1
    assert store.load() == BUNDLED_RATES


async def test_notify_alerts_keeps_stamps_when_a_later_send_aborts(db, session_factory):
    repo = AlertRepository(db)
    first = repo.create_alert("first@example.com", 0.065)
    second = repo.create_alert("second@example.com", 0.065)
    first.created_at = datetime(2026, 1, 1, tzinfo=timezone.utc)
    second.created_at = datetime(2026, 1, 2, tzinfo=timezone.utc)
    db.commit()
    first_id, second_id = first.id, second.id

    def handler(request: httpx.Request) -> httpx.Response:
        if json.loads(request.content)["to"] == "second@example.com":
            raise RuntimeError("provider client crashed")
        return httpx.Response(200, json={"id": "email-1"})

    rates = RateData(fetched_at=utc_now_iso(), fixed_30yr=6.0, fixed_15yr=5.3)
    with pytest.raises(RuntimeError):
        await check_alerts.notify_alerts(db, rates, make_email_client(handler), BASE_URL, send_interval=0)

    fresh = session_factory()
    try:
        assert AlertRepository(fresh).get_by_token(first_id).notified_at is not None
        assert AlertRepository(fresh).get_by_token(second_id).notified_at is None
    finally:
        fresh.close()
