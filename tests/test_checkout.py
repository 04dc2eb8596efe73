import pytest
import stripe

from core import checkout, lifecycle
from core.errors import ConcurrentModification, InvalidTransition, PaymentFailed
from models import db, AuditLog, Booking, Payment
from tests.conftest import actor


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {"intents": [], "refunds": []}

    def _create_intent(**kwargs):
        calls["intents"].append(kwargs)
        n = len(calls["intents"])
        return {"id": f"pi_test_{n}", "client_secret": f"pi_test_{n}_secret"}

    def _create_refund(**kwargs):
        calls["refunds"].append(kwargs)
        return {"id": f"re_test_{len(calls['refunds'])}"}

    monkeypatch.setattr(stripe.PaymentIntent, "create", _create_intent)
    monkeypatch.setattr(stripe.Refund, "create", _create_refund)
    return calls


@pytest.fixture
def pending_booking(make_facility, booking_request):
    fid = make_facility(hourly_rate=4000)
    return lifecycle.create_booking("driver-1", booking_request(fid, hours=1))


def test_start_payment_creates_intent_for_total(pending_booking, fake_stripe):
    out = checkout.start_payment(pending_booking.id, "driver-1")

    assert out["payment_intent"] == "pi_test_1"
    assert out["client_secret"] == "pi_test_1_secret"
    assert out["amount"] == 4720
    assert fake_stripe["intents"][0]["amount"] == 4720
    assert fake_stripe["intents"][0]["currency"] == "inr"
    assert fake_stripe["intents"][0]["metadata"]["booking_id"] == str(pending_booking.id)

    row = Payment.query.filter_by(provider_reference="pi_test_1").one()
    assert (row.kind, row.status) == ("CHARGE", "INIT")


def test_start_payment_only_for_pending(make_facility, booking_request, fake_stripe):
    fid = make_facility()
    booking = lifecycle.create_booking("driver-1", booking_request(fid, simulate_payment=True))

    with pytest.raises(InvalidTransition):
        checkout.start_payment(booking.id, "driver-1")
    assert fake_stripe["intents"] == []


def test_confirm_payment_confirms_once(pending_booking, fake_stripe):
    checkout.start_payment(pending_booking.id, "driver-1")

    booking = checkout.confirm_payment("pi_test_1", booking_id=str(pending_booking.id))
    assert booking.status == "confirmed"
    assert booking.payment_status == "completed"
    assert Payment.query.filter_by(provider_reference="pi_test_1").one().status == "PAID"

    again = checkout.confirm_payment("pi_test_1")
    assert again.status == "confirmed"
    assert AuditLog.query.filter_by(action="BOOKING_CONFIRMED").count() == 1
    assert AuditLog.query.filter_by(action="PAYMENT_PAID").count() == 1


def test_failed_payment_keeps_booking_pending(pending_booking, fake_stripe):
    checkout.start_payment(pending_booking.id, "driver-1")

    booking = checkout.mark_payment_failed("pi_test_1")
    assert booking.status == "pending"
    assert booking.payment_status == "failed"

    # A second attempt is allowed after a failure
    out = checkout.start_payment(pending_booking.id, "driver-1")
    assert out["payment_intent"] == "pi_test_2"


def test_cancel_after_capture_refunds_through_provider(pending_booking, fake_stripe):
    checkout.start_payment(pending_booking.id, "driver-1")
    checkout.confirm_payment("pi_test_1")

    booking = lifecycle.cancel_booking(pending_booking.id, "driver-1")

    assert fake_stripe["refunds"] == [{"payment_intent": "pi_test_1", "amount": 4720}]
    assert booking.payment_status == "refunded"
    refund = Payment.query.filter_by(booking_id=booking.id, kind="REFUND").one()
    assert (refund.provider, refund.provider_reference) == ("STRIPE", "re_test_1")


def test_refund_failure_leaves_booking_cancelled(pending_booking, fake_stripe, monkeypatch):
    checkout.start_payment(pending_booking.id, "driver-1")
    checkout.confirm_payment("pi_test_1")

    def _declined(**kwargs):
        raise stripe.StripeError("card_declined")

    monkeypatch.setattr(stripe.Refund, "create", _declined)

    with pytest.raises(PaymentFailed):
        lifecycle.cancel_booking(pending_booking.id, "driver-1")

    booking = db.session.get(Booking, pending_booking.id, populate_existing=True)
    assert booking.status == "cancelled"
    assert booking.payment_status == "completed"
    failure = AuditLog.query.filter_by(action="PAYMENT_REFUND_FAILED").one()
    assert failure.entity_id == str(booking.id)
    assert failure.details["amount"] == booking.total_amount


def test_webhook_rejects_bad_signature(client):
    resp = client.post("/webhooks/stripe", data=b"{}", headers={"Stripe-Signature": "t=1,v1=bad"})
    assert resp.status_code == 400


def test_webhook_success_confirms_booking(client, pending_booking, fake_stripe, monkeypatch):
    checkout.start_payment(pending_booking.id, "driver-1")
    event = {
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_test_1", "metadata": {"booking_id": str(pending_booking.id)}}},
    }
    monkeypatch.setattr("utils.payments.verify_webhook", lambda payload, signature: event)

    resp = client.post("/webhooks/stripe", data=b"{}", headers={"Stripe-Signature": "sig"})
    assert resp.status_code == 200
    assert resp.get_json() == {"received": True}
    assert db.session.get(Booking, pending_booking.id, populate_existing=True).status == "confirmed"


def test_webhook_for_unknown_intent_is_acknowledged(client, app, monkeypatch):
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_missing", "metadata": {}}}}
    monkeypatch.setattr("utils.payments.verify_webhook", lambda payload, signature: event)

    resp = client.post("/webhooks/stripe", data=b"{}", headers={"Stripe-Signature": "sig"})
    assert resp.status_code == 200


def test_start_payment_route_hides_other_users_bookings(client, pending_booking, fake_stripe):
    resp = client.post("/payments/start", json={"booking_id": pending_booking.id}, headers=actor("driver-2"))
    assert resp.status_code == 404

    resp = client.post("/payments/start", json={"booking_id": pending_booking.id}, headers=actor("driver-1"))
    assert resp.status_code == 200
    assert resp.get_json()["client_secret"] == "pi_test_1_secret"


def test_capture_after_cancellation_is_refunded_in_full(pending_booking, fake_stripe):
    checkout.start_payment(pending_booking.id, "driver-1")
    cancelled = lifecycle.cancel_booking(pending_booking.id, "driver-1")
    assert cancelled.payment_status == "pending"
    assert fake_stripe["refunds"] == []

    booking = checkout.confirm_payment("pi_test_1", booking_id=str(pending_booking.id))

    assert booking.status == "cancelled"
    assert booking.payment_status == "refunded"
    assert booking.refund_amount == 4720
    assert fake_stripe["refunds"] == [{"payment_intent": "pi_test_1", "amount": 4720}]
    refund = Payment.query.filter_by(booking_id=booking.id, kind="REFUND").one()
    assert (refund.provider, refund.amount) == ("STRIPE", 4720)

    # Redelivery does not refund twice
    checkout.confirm_payment("pi_test_1")
    assert len(fake_stripe["refunds"]) == 1


def test_redelivered_capture_finishes_a_confirmation_that_lost_a_race(pending_booking, fake_stripe, monkeypatch):
    checkout.start_payment(pending_booking.id, "driver-1")
    attempts = []

    def _flaky_transition(*args, **kwargs):
        attempts.append(args)
        if len(attempts) == 1:
            raise ConcurrentModification("Booking was modified concurrently, reload and retry")
        return lifecycle.transition(*args, **kwargs)

    monkeypatch.setattr(checkout, "transition", _flaky_transition)

    with pytest.raises(ConcurrentModification):
        checkout.confirm_payment("pi_test_1")
    booking = db.session.get(Booking, pending_booking.id, populate_existing=True)
    assert (booking.status, booking.payment_status) == ("pending", "completed")

    booking = checkout.confirm_payment("pi_test_1")
    assert booking.status == "confirmed"
    assert len(attempts) == 2
    assert AuditLog.query.filter_by(action="PAYMENT_PAID").count() == 1
