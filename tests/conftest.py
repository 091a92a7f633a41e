"""
pytest shared fixtures
"""
import pytest

from futures_ledger.application.dto.ledger import ExecutionContext
from futures_ledger.config.settings import LedgerSettings
from futures_ledger.container import Container

OWNER = "ledger-owner"
ORACLE = "price-oracle"
TOKEN = "usd-token"
CUSTODY = "futures-ledger"


@pytest.fixture
def ledger_settings():
    """Settings isolated from the environment and any .env file."""
    return LedgerSettings(
        _env_file=None,
        OWNER_PRINCIPAL=OWNER,
        CUSTODY_PRINCIPAL=CUSTODY,
        COLLATERAL_TOKEN=TOKEN,
        MIN_COLLATERAL=1000,
        MAX_POSITION_SIZE=1_000_000_000,
    )


@pytest.fixture
def container(ledger_settings):
    """Container wired with in-memory adapters."""
    return Container.create_for_testing(ledger_settings)


@pytest.fixture
def service(container):
    return container.get_ledger_service()


@pytest.fixture
def token(container):
    """In-memory collateral token."""
    return container.get_custody_port()


@pytest.fixture
def store(container):
    return container.get_store_port()


@pytest.fixture
def owner_ctx():
    return ExecutionContext(caller=OWNER, height=1)


@pytest.fixture
def oracle_ctx():
    return ExecutionContext(caller=ORACLE, height=1)


@pytest.fixture
def open_market(service):
    """
    Factory that sets the oracle, registers a contract and publishes a price.

    Returns the new contract id.
    """
    async def _open_market(symbol="PET", price=1000, expiry_in_blocks=1000, height=1):
        owner = ExecutionContext(caller=OWNER, height=height)
        oracle = ExecutionContext(caller=ORACLE, height=height)
        (await service.set_oracle(owner, ORACLE)).unwrap()
        contract_id = (await service.create_contract(owner, symbol, expiry_in_blocks)).unwrap()
        (await service.update_price(oracle, symbol, price)).unwrap()
        return contract_id

    return _open_market
