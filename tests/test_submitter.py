"""Tests for the transaction submission pipeline."""

import asyncio
import json
import pytest
from decimal import Decimal

import httpx

from ewallet.errors import (
    NetworkError,
    SessionExpiredError,
    TransactionError,
    ValidationError,
)
from ewallet.models import AuthState, TransactionKind
from ewallet.services.gateway import routes
from ewallet.transactions import FAILURE_MESSAGES, TransactionSubmitter


class TestValidationBeforeDispatch:
    """Tests that invalid input never reaches the network."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [-5, 0, "1.005", "abc", "1e30"])
    async def test_invalid_amount_not_sent(self, submitter, server, amount):
        """Test that bad amounts are rejected locally."""
        with pytest.raises(ValidationError):
            await submitter.submit(TransactionKind.DEPOSIT, amount)
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_transfer_without_recipient_not_sent(self, submitter, server):
        """Test the empty-recipient check."""
        with pytest.raises(ValidationError) as exc:
            await submitter.submit(TransactionKind.TRANSFER, "10", "")
        assert exc.value.message == "Recipient username is required"
        assert server.requests == []


class TestDispatch:
    """Tests for successful submissions."""

    @pytest.mark.asyncio
    async def test_deposit_payload(self, submitter, server):
        """Test the deposit route and request body."""
        server.reply("POST", routes.WALLET_DEPOSIT, {"balance": "110.00"})

        result = await submitter.submit(TransactionKind.DEPOSIT, "10")

        body = server.last_json(routes.WALLET_DEPOSIT)
        assert body["amount"] == "10.00"
        assert body["idempotencyKey"] == result.idempotency_key
        assert "receiverUsername" not in body
        assert result.balance == Decimal("110.00")

    @pytest.mark.asyncio
    async def test_withdraw_route(self, submitter, server):
        """Test that withdrawals go to the withdraw route."""
        server.reply("POST", routes.WALLET_WITHDRAW, {"newBalance": 90})

        result = await submitter.submit("withdraw", Decimal("10"))

        assert result.kind == TransactionKind.WITHDRAW
        assert result.balance == Decimal("90")

    @pytest.mark.asyncio
    async def test_transfer_payload(self, submitter, server):
        """Test that transfers name the receiver."""
        server.reply("POST", routes.WALLET_TRANSFER, {"message": "Transfer complete"})

        result = await submitter.submit(TransactionKind.TRANSFER, "40", " bob ")

        assert server.last_json(routes.WALLET_TRANSFER)["receiverUsername"] == "bob"
        assert result.message == "Transfer complete"
        assert result.balance is None

    @pytest.mark.asyncio
    async def test_each_attempt_gets_a_new_key(self, submitter, server):
        """Test that two identical submits carry distinct idempotency keys."""
        server.reply("POST", routes.WALLET_DEPOSIT, {"balance": "1"})

        first = await submitter.submit(TransactionKind.DEPOSIT, "10")
        second = await submitter.submit(TransactionKind.DEPOSIT, "10")

        assert first.idempotency_key != second.idempotency_key

    @pytest.mark.asyncio
    async def test_explicit_key_is_reused(self, submitter, server):
        """Test a caller-supplied key for retrying one logical action."""
        server.reply("POST", routes.WALLET_DEPOSIT, {"balance": "1"})

        await submitter.submit(TransactionKind.DEPOSIT, "10", idempotency_key="retry-1")
        await submitter.submit(TransactionKind.DEPOSIT, "10", idempotency_key="retry-1")

        keys = [json.loads(r.content)["idempotencyKey"] for r in server.requests_to(routes.WALLET_DEPOSIT)]
        assert keys == ["retry-1", "retry-1"]

    @pytest.mark.asyncio
    async def test_key_factory_is_used(self, gateway, server):
        """Test that the key factory is called once per attempt."""
        keys = iter(["k1", "k2"])
        submitter = TransactionSubmitter(gateway, key_factory=lambda: next(keys))
        server.reply("POST", routes.WALLET_DEPOSIT, {"balance": "1"})

        first = await submitter.submit(TransactionKind.DEPOSIT, "1")
        second = await submitter.submit(TransactionKind.DEPOSIT, "1")

        assert (first.idempotency_key, second.idempotency_key) == ("k1", "k2")

    @pytest.mark.asyncio
    async def test_concurrent_submits_both_go_out(self, submitter, server):
        """Test there is no mutual exclusion between overlapping submits."""
        release = asyncio.Event()
        both_pending = asyncio.Event()
        seen = []

        async def slow(request):
            seen.append(request)
            if len(seen) == 2:
                both_pending.set()
            await release.wait()
            return httpx.Response(200, json={"balance": "1"})

        server.on("POST", routes.WALLET_DEPOSIT, slow)

        tasks = [
            asyncio.create_task(submitter.submit(TransactionKind.DEPOSIT, "5")),
            asyncio.create_task(submitter.submit(TransactionKind.DEPOSIT, "5")),
        ]
        await both_pending.wait()
        assert submitter.pending == 2

        release.set()
        results = await asyncio.gather(*tasks)

        assert submitter.pending == 0
        assert results[0].idempotency_key != results[1].idempotency_key


class TestFailureMapping:
    """Tests for mapping remote failures to the error taxonomy."""

    @pytest.mark.asyncio
    async def test_business_rejection(self, submitter, server):
        """Test the service's message becomes a TransactionError."""
        server.reply("POST", routes.WALLET_WITHDRAW, {"message": "Insufficient funds"}, 400)

        with pytest.raises(TransactionError) as exc:
            await submitter.submit(TransactionKind.WITHDRAW, "500")

        assert exc.value.message == "Insufficient funds"
        assert submitter.pending == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kind", list(TransactionKind))
    async def test_transport_failure_default_message(self, submitter, server, kind):
        """Test each kind's default message on a message-less failure."""
        server.reply("POST", routes.TRANSACTION_ROUTES[kind], None, 500)

        with pytest.raises(NetworkError) as exc:
            await submitter.submit(kind, "5", "bob")

        assert exc.value.message == FAILURE_MESSAGES[kind]

    @pytest.mark.asyncio
    async def test_401_expires_session(self, submitter, signed_in_store, storage, server):
        """Test a 401 on submit ends the session and raises SessionExpiredError."""
        server.reply("POST", routes.WALLET_DEPOSIT, None, 401)

        with pytest.raises(SessionExpiredError):
            await submitter.submit(TransactionKind.DEPOSIT, "5")

        assert signed_in_store.auth_state == AuthState.UNAUTHENTICATED
        assert storage.get() is None


class TestBalanceRefresh:
    """Tests for the submit-then-refetch convention."""

    @pytest.mark.asyncio
    async def test_balance_changes_only_after_refetch(self, submitter, ledger, server):
        """Test that a successful transfer does not touch the displayed balance."""
        server.reply("GET", routes.WALLET_BALANCE, {"balance": "100.00"})
        await ledger.fetch_balance()
        assert ledger.balance == Decimal("100.00")

        server.reply("POST", routes.WALLET_TRANSFER, {"balance": "60.00"})
        result = await submitter.submit(TransactionKind.TRANSFER, 40, "bob")

        assert result.balance == Decimal("60.00")
        assert ledger.balance == Decimal("100.00")

        server.reply("GET", routes.WALLET_BALANCE, {"balance": "60.00"})
        await ledger.fetch_balance()

        assert ledger.balance == Decimal("60.00")
