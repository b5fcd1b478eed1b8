from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.interfaces.payment_gateway import GatewayStatus
from app.application.use_cases.reconcile_payment import ReconciliationOutcome
from app.domain.entities.booking import BookingStatus, PaymentStatus
from app.domain.errors import (
    BookingNotFoundError,
    OptimisticLockError,
    SignatureError,
    UnknownGatewayError,
    UnknownStatusError,
    ValidationError,
)


@pytest.fixture
def engine(use_cases):
    return use_cases["reconcile_payment"]


@pytest.fixture
def repo(components):
    return components["booking_repo"]


@pytest.fixture
def stub(components):
    return components["gateway_selector"].for_name("binance")


def titles(components) -> list[str]:
    return [n.title for n in components["notification_repo"].notifications]


class TestWebhookApplication:
    async def test_success_webhook_confirms_and_notifies(
        self, engine, repo, stub, components, place_order, flight_fields, signed_webhook
    ):
        order = await place_order(flight_fields)
        raw, headers = signed_webhook(stub, order.order_id, "finished", "pay-77")

        ack = await engine.apply_webhook_event("binance", headers, raw)

        assert ack.to_body() == {"returnCode": "SUCCESS"}
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.CONFIRMED
        assert booking.payment.payment_status == PaymentStatus.COMPLETED
        assert booking.payment.gateway_payment_id == "pay-77"
        assert booking.details.flight_order_id
        assert titles(components) == ["FLIGHT - Booking Initiated", "Payment Successful"]
        assert [m.subject for m in components["mailer"].sent][-1] == "Payment Successful - Booking Confirmed"

    async def test_signature_is_checked_before_lookup(self, engine, repo, stub, place_order, flight_fields):
        order = await place_order(flight_fields)
        repo.get_by_transaction_id = AsyncMock(wraps=repo.get_by_transaction_id)
        raw = b'{"order_id": "%s", "payment_status": "finished"}' % order.order_id.encode()

        with pytest.raises(SignatureError):
            await engine.apply_webhook_event("binance", {"x-stub-signature": "deadbeef"}, raw)

        repo.get_by_transaction_id.assert_not_awaited()

    async def test_missing_signature_header_is_rejected(self, engine, place_order, flight_fields):
        order = await place_order(flight_fields)

        with pytest.raises(SignatureError):
            await engine.apply_webhook_event("binance", {}, b'{"order_id": "%s"}' % order.order_id.encode())

    async def test_unknown_gateway(self, engine):
        with pytest.raises(UnknownGatewayError):
            await engine.apply_webhook_event("paypal", {}, b"{}")

    async def test_unknown_order(self, engine, stub, signed_webhook):
        raw, headers = signed_webhook(stub, "ORD-NOPE", "finished")

        with pytest.raises(BookingNotFoundError):
            await engine.apply_webhook_event("binance", headers, raw)

    async def test_unknown_status_is_rejected_without_state_change(
        self, engine, repo, stub, place_order, flight_fields, signed_webhook
    ):
        order = await place_order(flight_fields)
        raw, headers = signed_webhook(stub, order.order_id, "teleported")

        with pytest.raises(UnknownStatusError):
            await engine.apply_webhook_event("binance", headers, raw)

        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.payment.payment_status == PaymentStatus.PENDING

    async def test_malformed_body_is_a_validation_error(self, engine, stub):
        raw = b"not json"
        headers = {"x-stub-signature": stub.sign_body(raw)}

        with pytest.raises(ValidationError):
            await engine.apply_webhook_event("binance", headers, raw)

    async def test_failed_payment_acks_fail_for_binance(
        self, engine, repo, stub, components, place_order, flight_fields, signed_webhook
    ):
        order = await place_order(flight_fields)
        raw, headers = signed_webhook(stub, order.order_id, "failed")

        ack = await engine.apply_webhook_event("binance", headers, raw)

        assert ack.return_code == "FAIL"
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.FAILED
        assert booking.failure_reason == "Payment failed at gateway"
        assert titles(components)[-1] == "FLIGHT - Booking Failed"
        assert components["flight_provider"].orders == []

    async def test_failed_payment_acks_success_for_nowpayments(
        self, engine, components, place_order, flight_fields, signed_webhook
    ):
        stub = components["gateway_selector"].for_name("nowpayments")
        order = await place_order(flight_fields, gateway="nowpayments", pay_currency="btc")
        raw, headers = signed_webhook(stub, order.order_id, "expired")

        ack = await engine.apply_webhook_event("nowpayments", headers, raw)

        assert ack.return_code == "SUCCESS"


class TestStateMachine:
    async def test_processing_status_keeps_booking_pending(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)

        result = await engine.apply_status(order.order_id, GatewayStatus.PROCESSING)
        again = await engine.apply_status(order.order_id, GatewayStatus.PROCESSING)

        assert result.outcome == ReconciliationOutcome.PROCESSING
        assert again.outcome == ReconciliationOutcome.IGNORED
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.PENDING
        assert booking.payment.payment_status == PaymentStatus.PROCESSING

    async def test_pending_status_is_ignored(self, engine, place_order, flight_fields):
        order = await place_order(flight_fields)

        result = await engine.apply_status(order.order_id, GatewayStatus.PENDING)

        assert result.outcome == ReconciliationOutcome.IGNORED

    async def test_duplicate_success_commits_once(self, engine, components, place_order, flight_fields):
        order = await place_order(flight_fields)

        first = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-1")
        second = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-1")

        assert first.outcome == ReconciliationOutcome.CONFIRMED
        assert second.outcome == ReconciliationOutcome.DUPLICATE
        assert len(components["flight_provider"].orders) == 1
        assert titles(components).count("Payment Successful") == 1

    async def test_success_with_different_payment_id_is_not_recommitted(
        self, engine, components, place_order, flight_fields
    ):
        order = await place_order(flight_fields)
        await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-1")

        result = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-2")

        assert result.outcome == ReconciliationOutcome.DUPLICATE
        assert result.booking.payment.gateway_payment_id == "pay-1"
        assert len(components["flight_provider"].orders) == 1

    async def test_confirmed_booking_is_never_downgraded(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)
        await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)

        result = await engine.apply_status(order.order_id, GatewayStatus.FAILED)

        assert result.outcome == ReconciliationOutcome.IGNORED
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.CONFIRMED

    async def test_success_after_failure_is_not_committed(self, engine, components, place_order, flight_fields):
        order = await place_order(flight_fields)
        await engine.apply_status(order.order_id, GatewayStatus.FAILED)

        result = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)

        assert result.outcome == ReconciliationOutcome.IGNORED
        assert result.booking.booking_status == BookingStatus.FAILED
        assert components["flight_provider"].orders == []

    async def test_commit_in_flight_blocks_other_events(self, engine, repo, components, place_order, flight_fields):
        order = await place_order(flight_fields)
        booking = await repo.get_by_transaction_id(order.order_id)
        booking.claim_commit(booking.created_at)
        await repo.save(booking)

        result = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)

        assert result.outcome == ReconciliationOutcome.IN_FLIGHT
        assert components["flight_provider"].orders == []

    @pytest.mark.parametrize(
        "settle, booking_status, payment_status",
        [
            ("confirm", BookingStatus.CONFIRMED, PaymentStatus.COMPLETED),
            ("fail", BookingStatus.FAILED, PaymentStatus.FAILED),
            ("cancel", BookingStatus.CANCELLED, PaymentStatus.FAILED),
        ],
    )
    async def test_waiting_event_leaves_closed_booking_unchanged(
        self, engine, repo, clock, place_order, flight_fields, settle, booking_status, payment_status
    ):
        order = await place_order(flight_fields)
        if settle == "confirm":
            await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-1")
        elif settle == "fail":
            await engine.apply_status(order.order_id, GatewayStatus.FAILED)
        else:
            await engine.expire_booking(await repo.get_by_transaction_id(order.order_id), "late")
        before = await repo.get_by_transaction_id(order.order_id)
        clock.advance(minutes=5)

        result = await engine.apply_status(order.order_id, GatewayStatus.PENDING)

        assert result.outcome == ReconciliationOutcome.IGNORED
        after = await repo.get_by_transaction_id(order.order_id)
        assert after.booking_status == booking_status
        assert after.payment.payment_status == payment_status
        assert after.version == before.version
        assert after.updated_at == before.updated_at
        assert after.failure_reason == before.failure_reason


class TestStaleCommit:
    async def test_stale_claim_is_failed_and_notified(self, engine, repo, components, place_order, flight_fields):
        order = await place_order(flight_fields)
        booking = await repo.get_by_transaction_id(order.order_id)
        booking.claim_commit(booking.created_at)
        booking = await repo.save(booking)

        result = await engine.fail_stale_commit(booking, "Provider commit never finished, manual review required")

        assert result.outcome == ReconciliationOutcome.COMMIT_FAILED
        stored = await repo.get_by_transaction_id(order.order_id)
        assert stored.booking_status == BookingStatus.FAILED
        assert stored.payment.payment_status == PaymentStatus.FAILED
        assert titles(components)[-1] == "FLIGHT - Booking Failed"
        assert components["flight_provider"].orders == []

    async def test_unclaimed_booking_is_left_alone(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)
        booking = await repo.get_by_transaction_id(order.order_id)

        result = await engine.fail_stale_commit(booking, "review")

        assert result.outcome == ReconciliationOutcome.IGNORED
        stored = await repo.get_by_transaction_id(order.order_id)
        assert stored.booking_status == BookingStatus.PENDING

    async def test_provider_failure_fails_booking_after_payment(
        self, engine, repo, components, place_order, flight_fields
    ):
        order = await place_order(flight_fields)
        components["flight_provider"].error = "SEGMENT SELL FAILURE"

        result = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS, "pay-1")

        assert result.outcome == ReconciliationOutcome.COMMIT_FAILED
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.FAILED
        assert booking.payment.payment_status == PaymentStatus.FAILED
        assert "SEGMENT SELL FAILURE" in booking.failure_reason
        assert titles(components)[-1] == "FLIGHT - Booking Failed"

    async def test_concurrent_update_is_retried_on_fresh_copy(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)
        original_save = repo.save
        conflicts = {"left": 1}

        async def racing_save(booking):
            if conflicts["left"]:
                conflicts["left"] -= 1
                stored = repo.bookings[booking.order_id]
                stored.version += 1
                raise OptimisticLockError(booking.order_id, booking.version, stored.version)
            return await original_save(booking)

        repo.save = racing_save

        result = await engine.apply_status(order.order_id, GatewayStatus.PROCESSING)

        assert result.outcome == ReconciliationOutcome.PROCESSING
        assert result.booking.payment.payment_status == PaymentStatus.PROCESSING

    async def test_persistent_conflict_gives_up(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)

        async def always_conflicting(booking):
            raise OptimisticLockError(booking.order_id, booking.version, booking.version + 1)

        repo.save = always_conflicting

        with pytest.raises(OptimisticLockError):
            await engine.apply_status(order.order_id, GatewayStatus.FAILED)

    async def test_notifier_failure_does_not_undo_confirmation(self, engine, repo, place_order, flight_fields):
        order = await place_order(flight_fields)
        engine._notifier.notify = AsyncMock(side_effect=RuntimeError("smtp down"))

        result = await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)

        assert result.outcome == ReconciliationOutcome.CONFIRMED
        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.booking_status == BookingStatus.CONFIRMED


class TestExpiry:
    async def test_expire_cancels_and_notifies(self, engine, repo, components, clock, place_order, hotel_fields):
        order = await place_order(hotel_fields)
        clock.advance(minutes=11)
        booking = await repo.get_by_transaction_id(order.order_id)

        result = await engine.expire_booking(booking, "Payment not received within the pending window")

        assert result.outcome == ReconciliationOutcome.CANCELLED
        stored = await repo.get_by_transaction_id(order.order_id)
        assert stored.booking_status == BookingStatus.CANCELLED
        assert stored.updated_at == clock.now()
        assert titles(components)[-1] == "HOTEL - Booking Cancelled"

    async def test_expire_skips_terminal_booking(self, engine, repo, place_order, hotel_fields):
        order = await place_order(hotel_fields)
        await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)
        booking = await repo.get_by_transaction_id(order.order_id)

        result = await engine.expire_booking(booking, "late")

        assert result.outcome == ReconciliationOutcome.IGNORED
        assert result.booking.booking_status == BookingStatus.CONFIRMED

    async def test_expire_retries_against_concurrent_success(self, engine, repo, clock, place_order, hotel_fields):
        order = await place_order(hotel_fields)
        stale_copy = await repo.get_by_transaction_id(order.order_id)
        await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)
        clock.advance(minutes=11)

        result = await engine.expire_booking(stale_copy, "late")

        assert result.outcome == ReconciliationOutcome.IGNORED
        assert result.booking.booking_status == BookingStatus.CONFIRMED

    async def test_clock_is_used_for_timestamps(self, engine, repo, clock, place_order, vacation_fields):
        order = await place_order(vacation_fields)
        clock.advance(minutes=2)

        await engine.apply_status(order.order_id, GatewayStatus.SUCCESS)

        booking = await repo.get_by_transaction_id(order.order_id)
        assert booking.updated_at - booking.created_at == timedelta(minutes=2)
        assert booking.details.confirmed is True
