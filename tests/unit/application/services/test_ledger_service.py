"""
Tests for LedgerService.

Runs against the in-memory container: in-memory store, in-memory collateral
token and in-process lock.
"""
import asyncio
from contextlib import asynccontextmanager

import pytest
from unittest.mock import AsyncMock

from futures_ledger.application.dto.ledger import ExecutionContext, LedgerResponse
from futures_ledger.application.ports.outbound.custody_port import CustodyError
from futures_ledger.application.ports.outbound.lock_port import LEDGER_LOCK, LockAcquisitionError
from futures_ledger.container import Container
from futures_ledger.domain.entities.position import PositionSide
from futures_ledger.domain.exceptions import ErrorCode, LedgerError
from futures_ledger.infrastructure.adapters.custody.memory_token_adapter import InMemoryTokenAdapter
from futures_ledger.infrastructure.adapters.persistence.memory_ledger_adapter import InMemoryLedgerAdapter
from futures_ledger.infrastructure.adapters.persistence.memory_lock_adapter import InMemoryLockAdapter

OWNER = "ledger-owner"
ORACLE = "price-oracle"
TOKEN = "usd-token"
CUSTODY = "futures-ledger"


def ctx(caller, height=1):
    return ExecutionContext(caller=caller, height=height)


class TestLedgerResponse:

    def test_unwrap_success(self):
        assert LedgerResponse.success_response(5).unwrap() == 5

    def test_unwrap_failure_raises(self):
        response = LedgerResponse.failure_response(ErrorCode.NOT_FOUND, "missing")

        with pytest.raises(LedgerError) as exc:
            response.unwrap()
        assert exc.value.error_code == ErrorCode.NOT_FOUND


class TestAdministration:

    @pytest.mark.asyncio
    async def test_set_oracle(self, service, owner_ctx):
        response = await service.set_oracle(owner_ctx, ORACLE)

        assert response.success is True
        assert response.value is True
        assert await service.get_oracle() == ORACLE

    @pytest.mark.asyncio
    async def test_set_oracle_non_owner(self, service):
        response = await service.set_oracle(ctx("alice"), "alice")

        assert response.success is False
        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert await service.get_oracle() is None

    @pytest.mark.asyncio
    async def test_set_collateral_token(self, service, owner_ctx):
        response = await service.set_collateral_token(owner_ctx, "eur-token")

        assert response.success is True
        assert await service.get_collateral_token() == "eur-token"

    @pytest.mark.asyncio
    async def test_set_collateral_token_non_owner(self, service):
        response = await service.set_collateral_token(ctx("alice"), "eur-token")

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert await service.get_collateral_token() == TOKEN


class TestContractRegistry:

    @pytest.mark.asyncio
    async def test_ids_sequential_across_deactivation(self, service, owner_ctx):
        first = await service.create_contract(owner_ctx, "PET", 1000)
        second = await service.create_contract(owner_ctx, "PET", 1000)
        await service.deactivate_contract(owner_ctx, second.value)
        third = await service.create_contract(owner_ctx, "BTC", 50)

        assert [first.value, second.value, third.value] == [1, 2, 3]
        assert await service.get_last_contract_id() == 3

    @pytest.mark.asyncio
    async def test_create_non_owner(self, service):
        response = await service.create_contract(ctx("alice"), "PET", 1000)

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert await service.get_last_contract_id() == 0

    @pytest.mark.asyncio
    async def test_create_zero_expiry(self, service, owner_ctx):
        response = await service.create_contract(owner_ctx, "PET", 0)

        assert response.error_code == ErrorCode.INVALID_INPUT
        assert await service.get_last_contract_id() == 0

    @pytest.mark.asyncio
    async def test_failed_create_does_not_consume_id(self, service, owner_ctx):
        await service.create_contract(owner_ctx, "X" * 17, 1000)

        response = await service.create_contract(owner_ctx, "PET", 1000)
        assert response.value == 1

    @pytest.mark.asyncio
    async def test_get_contract(self, service):
        owner = ctx(OWNER, height=100)
        contract_id = (await service.create_contract(owner, "PET", 1000)).value

        contract = await service.get_contract(contract_id)
        assert contract.symbol == "PET"
        assert contract.expiry_height == 1100
        assert await service.get_contract(contract_id + 1) is None

    @pytest.mark.asyncio
    async def test_deactivate_unknown(self, service, owner_ctx):
        response = await service.deactivate_contract(owner_ctx, 7)
        assert response.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_deactivate_non_owner(self, service, owner_ctx):
        contract_id = (await service.create_contract(owner_ctx, "PET", 1000)).value

        response = await service.deactivate_contract(ctx("alice"), contract_id)

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert (await service.get_contract(contract_id)).active is True


class TestPriceFeed:

    @pytest.mark.asyncio
    async def test_update_without_oracle(self, service, owner_ctx):
        response = await service.update_price(owner_ctx, "PET", 1000)

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert await service.get_price("PET") is None

    @pytest.mark.asyncio
    async def test_update_by_non_oracle(self, service, owner_ctx):
        await service.set_oracle(owner_ctx, ORACLE)

        response = await service.update_price(ctx("mallory"), "PET", 1000)

        assert response.error_code == ErrorCode.UNAUTHORIZED
        assert await service.get_price("PET") is None

    @pytest.mark.asyncio
    async def test_update_by_oracle(self, service, owner_ctx, oracle_ctx):
        await service.set_oracle(owner_ctx, ORACLE)

        response = await service.update_price(oracle_ctx, "PET", 1000)

        assert response.success is True
        assert await service.get_price("PET") == 1000

    @pytest.mark.asyncio
    async def test_zero_price_rejected(self, service, owner_ctx, oracle_ctx):
        await service.set_oracle(owner_ctx, ORACLE)

        response = await service.update_price(oracle_ctx, "PET", 0)
        assert response.error_code == ErrorCode.INVALID_INPUT


class TestPositionLifecycle:

    @pytest.mark.asyncio
    async def test_pet_long_scenario(self, service, token, open_market, oracle_ctx):
        """Long 1000 PET at 1000, closed at 1100."""
        token.mint("alice", 100000)
        token.mint(CUSTODY, 1000)
        contract_id = await open_market(price=1000)

        opened = await service.open_position(ctx("alice", 2), contract_id, "long", 1000, TOKEN)
        assert opened.success is True
        assert opened.value.collateral_amount == 50000
        assert await token.balance_of("alice") == 50000

        liquidation = await service.calculate_liquidation_price("alice", contract_id)
        assert liquidation.value == 0

        await service.update_price(oracle_ctx, "PET", 1100)
        assert (await service.get_position_pnl("alice", contract_id)).value == 100

        closed = await service.close_position(ctx("alice", 3), contract_id, TOKEN)

        assert closed.success is True
        assert closed.value == 100
        assert await token.balance_of("alice") == 100100
        assert await service.get_position("alice", contract_id) is None

    @pytest.mark.asyncio
    async def test_round_trip_at_same_price(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market(price=1000)

        await service.open_position(ctx("alice"), contract_id, PositionSide.SHORT, 1000, TOKEN)
        closed = await service.close_position(ctx("alice"), contract_id, TOKEN)

        assert closed.value == 0
        assert await token.balance_of("alice") == 100000
        assert await token.balance_of(CUSTODY) == 0

    @pytest.mark.asyncio
    async def test_duplicate_open(self, service, token, open_market):
        token.mint("alice", 200000)
        contract_id = await open_market()

        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        second = await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert second.error_code == ErrorCode.ALREADY_EXISTS
        assert await token.balance_of("alice") == 150000

    @pytest.mark.asyncio
    async def test_reopen_after_close(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market()

        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        await service.close_position(ctx("alice"), contract_id, TOKEN)
        reopened = await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)

        assert reopened.success is True
        assert reopened.value.side == PositionSide.SHORT

    @pytest.mark.asyncio
    async def test_open_wrong_token(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market()

        response = await service.open_position(ctx("alice"), contract_id, "long", 1000, "fake-token")

        assert response.error_code == ErrorCode.INVALID_INPUT
        assert await token.balance_of("alice") == 100000

    @pytest.mark.asyncio
    async def test_open_after_expiry(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market(expiry_in_blocks=10, height=1)

        at_expiry = await service.open_position(ctx("alice", 11), contract_id, "long", 1000, TOKEN)
        before = await service.open_position(ctx("alice", 10), contract_id, "long", 1000, TOKEN)

        assert at_expiry.error_code == ErrorCode.EXPIRED_OR_INACTIVE
        assert before.success is True

    @pytest.mark.asyncio
    async def test_open_on_deactivated_contract(self, service, token, open_market, owner_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.deactivate_contract(owner_ctx, contract_id)

        response = await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert response.error_code == ErrorCode.EXPIRED_OR_INACTIVE

    @pytest.mark.asyncio
    async def test_open_insufficient_balance(self, service, token, open_market):
        token.mint("alice", 49999)
        contract_id = await open_market()

        response = await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert response.error_code == ErrorCode.INSUFFICIENT_FUNDS
        assert await service.get_position("alice", contract_id) is None

    @pytest.mark.asyncio
    async def test_open_below_min_collateral(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market()

        response = await service.open_position(ctx("alice"), contract_id, "long", 19, TOKEN)

        assert response.error_code == ErrorCode.INSUFFICIENT_FUNDS

    @pytest.mark.asyncio
    async def test_close_without_position(self, service, open_market):
        contract_id = await open_market()

        response = await service.close_position(ctx("alice"), contract_id, TOKEN)

        assert response.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_close_after_deactivation(self, service, token, open_market, owner_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        await service.deactivate_contract(owner_ctx, contract_id)

        closed = await service.close_position(ctx("alice"), contract_id, TOKEN)

        assert closed.success is True
        assert await token.balance_of("alice") == 100000


class TestLiquidation:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [1, 500, 999, 1000, 5000])
    async def test_long_never_liquidatable(self, service, token, open_market, oracle_ctx, price):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        await service.update_price(oracle_ctx, "PET", price)

        response = await service.liquidate_position(ctx("bob"), "alice", contract_id, TOKEN)

        assert response.error_code == ErrorCode.UNLIQUIDATABLE
        assert await service.get_position("alice", contract_id) is not None

    @pytest.mark.asyncio
    async def test_short_liquidated_once(self, service, token, open_market, oracle_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)
        await service.update_price(oracle_ctx, "PET", 51000)

        first = await service.liquidate_position(ctx("bob"), "alice", contract_id, TOKEN)
        second = await service.liquidate_position(ctx("carol"), "alice", contract_id, TOKEN)

        assert first.success is True
        assert first.value == 50000
        assert await token.balance_of("bob") == 50000
        assert second.error_code == ErrorCode.NOT_FOUND
        assert await token.balance_of("carol") == 0

    @pytest.mark.asyncio
    async def test_short_below_threshold(self, service, token, open_market, oracle_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)
        await service.update_price(oracle_ctx, "PET", 50999)

        response = await service.liquidate_position(ctx("bob"), "alice", contract_id, TOKEN)

        assert response.error_code == ErrorCode.UNLIQUIDATABLE

    @pytest.mark.asyncio
    async def test_liquidation_price_query(self, service, token, open_market):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)

        response = await service.calculate_liquidation_price("alice", contract_id)

        assert response.value == 51000

    @pytest.mark.asyncio
    async def test_liquidation_price_without_position(self, service):
        response = await service.calculate_liquidation_price("alice", 1)
        assert response.error_code == ErrorCode.NOT_FOUND


class TestAtomicity:

    @pytest.mark.asyncio
    async def test_refused_transfer_leaves_no_position(self, ledger_settings):
        token = InMemoryTokenAdapter(token_id=TOKEN)
        token.mint("alice", 100000)
        token.transfer = AsyncMock(return_value=False)
        container = Container.create_for_testing(ledger_settings)
        container._custody_port = token
        service = container.get_ledger_service()

        owner = ctx(OWNER)
        await service.set_oracle(owner, ORACLE)
        contract_id = (await service.create_contract(owner, "PET", 1000)).value
        await service.update_price(ctx(ORACLE), "PET", 1000)

        response = await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert response.error_code == ErrorCode.CUSTODY_FAILURE
        assert await service.get_position("alice", contract_id) is None
        assert await token.balance_of("alice") == 100000

    @pytest.mark.asyncio
    async def test_failed_payout_keeps_position(self, service, token, open_market, oracle_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        await service.update_price(oracle_ctx, "PET", 1100)

        # custody holds 50000 but the payout is 50100
        response = await service.close_position(ctx("alice"), contract_id, TOKEN)

        assert response.error_code == ErrorCode.CUSTODY_FAILURE
        assert await service.get_position("alice", contract_id) is not None
        assert await token.balance_of("alice") == 50000
        assert await token.balance_of(CUSTODY) == 50000

    @pytest.mark.asyncio
    async def test_custody_error_on_liquidation(self, service, token, open_market, oracle_ctx):
        token.mint("alice", 100000)
        contract_id = await open_market()
        await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)
        await service.update_price(oracle_ctx, "PET", 60000)
        token.transfer = AsyncMock(side_effect=CustodyError("token backend down"))

        response = await service.liquidate_position(ctx("bob"), "alice", contract_id, TOKEN)

        assert response.error_code == ErrorCode.CUSTODY_FAILURE
        assert await service.get_position("alice", contract_id) is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates_and_rolls_back(self, service, store, owner_ctx):
        store.set_last_contract_id = AsyncMock(side_effect=RuntimeError("disk full"))

        with pytest.raises(RuntimeError):
            await service.create_contract(owner_ctx, "PET", 1000)

        assert await store.get_contract(1) is None


class CommitFailingLedgerAdapter(InMemoryLedgerAdapter):
    """In-memory store whose commit fails after the unit of work has run."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.fail_commit = False

    @asynccontextmanager
    async def transaction(self):
        async with super().transaction():
            yield
            if self.fail_commit:
                raise RuntimeError("commit failed")


class TestCommitFailure:
    """Custody transfers are sent back when the store fails to commit."""

    @pytest.fixture
    def failing_store(self):
        return CommitFailingLedgerAdapter(collateral_token=TOKEN)

    @pytest.fixture
    def token(self):
        return InMemoryTokenAdapter(token_id=TOKEN)

    @pytest.fixture
    def service(self, ledger_settings, failing_store, token):
        container = Container(
            settings=ledger_settings,
            store_port=failing_store,
            custody_port=token,
            lock_port=InMemoryLockAdapter(),
        )
        return container.get_ledger_service()

    async def _market(self, service):
        await service.set_oracle(ctx(OWNER), ORACLE)
        contract_id = (await service.create_contract(ctx(OWNER), "PET", 1000)).value
        await service.update_price(ctx(ORACLE), "PET", 1000)
        return contract_id

    @pytest.mark.asyncio
    async def test_open_collateral_returned(self, service, failing_store, token):
        token.mint("alice", 100000)
        contract_id = await self._market(service)
        failing_store.fail_commit = True

        with pytest.raises(RuntimeError):
            await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert await service.get_position("alice", contract_id) is None
        assert await token.balance_of("alice") == 100000
        assert await token.balance_of(CUSTODY) == 0

    @pytest.mark.asyncio
    async def test_close_payout_returned(self, service, failing_store, token):
        token.mint("alice", 100000)
        token.mint(CUSTODY, 1000)
        contract_id = await self._market(service)
        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        await service.update_price(ctx(ORACLE), "PET", 1100)
        failing_store.fail_commit = True

        with pytest.raises(RuntimeError):
            await service.close_position(ctx("alice"), contract_id, TOKEN)

        assert await service.get_position("alice", contract_id) is not None
        assert await token.balance_of("alice") == 50000
        assert await token.balance_of(CUSTODY) == 51000

    @pytest.mark.asyncio
    async def test_liquidation_reward_returned(self, service, failing_store, token):
        token.mint("alice", 100000)
        contract_id = await self._market(service)
        await service.open_position(ctx("alice"), contract_id, "short", 1000, TOKEN)
        await service.update_price(ctx(ORACLE), "PET", 51000)
        failing_store.fail_commit = True

        with pytest.raises(RuntimeError):
            await service.liquidate_position(ctx("bob"), "alice", contract_id, TOKEN)

        assert await service.get_position("alice", contract_id) is not None
        assert await token.balance_of("bob") == 0
        assert await token.balance_of(CUSTODY) == 50000

    @pytest.mark.asyncio
    async def test_next_operation_starts_clean(self, service, failing_store, token):
        token.mint("alice", 100000)
        contract_id = await self._market(service)
        await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)
        failing_store.fail_commit = True

        # no transfer happens here, so nothing may be sent back
        with pytest.raises(RuntimeError):
            await service.update_price(ctx(ORACLE), "PET", 1100)

        assert await token.balance_of("alice") == 50000
        assert await token.balance_of(CUSTODY) == 50000

    @pytest.mark.asyncio
    async def test_refused_reversal_is_logged(self, service, failing_store, token, caplog):
        token.mint("alice", 100000)
        contract_id = await self._market(service)
        original_transfer = token.transfer

        async def refuse_refunds(amount, sender, recipient):
            if sender == CUSTODY:
                return False
            return await original_transfer(amount, sender, recipient)

        token.transfer = refuse_refunds
        failing_store.fail_commit = True

        with pytest.raises(RuntimeError):
            await service.open_position(ctx("alice"), contract_id, "long", 1000, TOKEN)

        assert "Reverting transfer of 50000 from alice to futures-ledger was refused" in caplog.text
        assert await token.balance_of(CUSTODY) == 50000


class TestSerialization:

    @pytest.mark.asyncio
    async def test_lock_released_after_operations(self, service, container, owner_ctx):
        await service.create_contract(owner_ctx, "PET", 1000)
        await service.create_contract(ctx("alice"), "PET", 1000)

        assert await container.get_lock_port().is_locked(LEDGER_LOCK) is False

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, service, owner_ctx):
        responses = await asyncio.gather(*[
            service.create_contract(owner_ctx, "PET", 1000) for _ in range(5)
        ])

        assert sorted(r.value for r in responses) == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_lock_timeout_propagates(self, container, owner_ctx):
        service = container.get_ledger_service()
        service.lock_timeout_seconds = 0.01
        lock = container.get_lock_port()
        await lock.acquire(LEDGER_LOCK, 1)

        try:
            with pytest.raises(LockAcquisitionError):
                await service.create_contract(owner_ctx, "PET", 1000)
            with pytest.raises(LockAcquisitionError):
                await service.get_last_contract_id()
        finally:
            await lock.release(LEDGER_LOCK)

        assert await service.get_last_contract_id() == 0


class TestMarginQueries:

    def test_required_collateral(self, service):
        assert service.calculate_required_collateral(1000).value == 50000

    def test_required_collateral_invalid(self, service):
        response = service.calculate_required_collateral(-1)
        assert response.error_code == ErrorCode.INVALID_INPUT

    def test_pnl(self, service):
        assert service.calculate_pnl("long", 1000, 1100, 1000).value == 100
        assert service.calculate_pnl("short", 1000, 1100, 1000).value == -100

    def test_pnl_invalid_side(self, service):
        response = service.calculate_pnl("flat", 1000, 1100, 1000)
        assert response.error_code == ErrorCode.INVALID_INPUT
