"""
Dependency Injection Container.

This module provides a central container for wiring dependencies
following the Dependency Inversion Principle.

Usage:
    # In-memory ledger
    container = Container()
    service = container.get_ledger_service()

    # Testing
    container = Container.create_for_testing()
    # or with custom doubles
    container = Container(custody_port=mock_custody)

    # SQL-backed ledger
    container = await Container.create_with_database()
"""
from typing import Optional

from futures_ledger.application.ports.outbound.custody_port import CustodyPort
from futures_ledger.application.ports.outbound.ledger_store_port import LedgerStorePort
from futures_ledger.application.ports.outbound.lock_port import LockPort
from futures_ledger.application.services.ledger_service import LedgerService
from futures_ledger.application.use_cases.manage_contracts import ManageContractsUseCase
from futures_ledger.application.use_cases.publish_price import PublishPriceUseCase
from futures_ledger.application.use_cases.trade_position import TradePositionUseCase
from futures_ledger.config.settings import LedgerSettings
from futures_ledger.domain.services.access_control import AccessControl
from futures_ledger.domain.services.margin_engine import MarginEngine


class Container:
    """
    Dependency Injection Container.

    Manages the creation and wiring of ledger dependencies.
    Port instances and use cases are created once and cached.
    """

    def __init__(
        self,
        settings: Optional[LedgerSettings] = None,
        store_port: Optional[LedgerStorePort] = None,
        custody_port: Optional[CustodyPort] = None,
        lock_port: Optional[LockPort] = None,
    ):
        """
        Initialize container with optional port overrides.

        Args:
            settings: Ledger settings (loaded from the environment if None)
            store_port: Ledger store implementation (in-memory if None)
            custody_port: Collateral token implementation (in-memory if None)
            lock_port: Lock implementation (in-process if None)
        """
        if settings is None:
            from futures_ledger.config.settings import settings as default_settings
            settings = default_settings
        self.settings = settings
        self._store_port = store_port
        self._custody_port = custody_port
        self._lock_port = lock_port

        self._access_control: Optional[AccessControl] = None
        self._margin_engine: Optional[MarginEngine] = None
        self._manage_contracts_use_case: Optional[ManageContractsUseCase] = None
        self._publish_price_use_case: Optional[PublishPriceUseCase] = None
        self._trade_position_use_case: Optional[TradePositionUseCase] = None
        self._ledger_service: Optional[LedgerService] = None

    @classmethod
    def create_for_testing(cls, settings: Optional[LedgerSettings] = None) -> "Container":
        """
        Create container with in-memory adapters for testing.

        Returns:
            Container with test adapters
        """
        from futures_ledger.infrastructure.adapters.custody.memory_token_adapter import InMemoryTokenAdapter
        from futures_ledger.infrastructure.adapters.persistence.memory_ledger_adapter import InMemoryLedgerAdapter
        from futures_ledger.infrastructure.adapters.persistence.memory_lock_adapter import InMemoryLockAdapter

        settings = settings or LedgerSettings(_env_file=None)
        return cls(
            settings=settings,
            store_port=InMemoryLedgerAdapter(collateral_token=settings.COLLATERAL_TOKEN),
            custody_port=InMemoryTokenAdapter(token_id=settings.COLLATERAL_TOKEN or "collateral-token"),
            lock_port=InMemoryLockAdapter(),
        )

    @classmethod
    async def create_with_database(
        cls,
        settings: Optional[LedgerSettings] = None,
        custody_port: Optional[CustodyPort] = None,
    ) -> "Container":
        """
        Create container backed by the SQL ledger store.

        Creates missing tables and seeds the scalar state row.
        """
        from futures_ledger.infrastructure.adapters.persistence.sqlalchemy_ledger_adapter import SqlAlchemyLedgerAdapter
        from futures_ledger.infrastructure.db.session import create_engine, create_session_factory, create_tables

        if settings is None:
            from futures_ledger.config.settings import settings as default_settings
            settings = default_settings

        engine = create_engine(settings.DATABASE_URL, echo=settings.LOG_LEVEL == "DEBUG")
        await create_tables(engine)
        store = SqlAlchemyLedgerAdapter(create_session_factory(engine))
        await store.initialize(collateral_token=settings.COLLATERAL_TOKEN)

        return cls(settings=settings, store_port=store, custody_port=custody_port)

    # --- Port Getters ---

    def get_store_port(self) -> LedgerStorePort:
        """Get ledger store implementation."""
        if self._store_port is None:
            from futures_ledger.infrastructure.adapters.persistence.memory_ledger_adapter import InMemoryLedgerAdapter
            self._store_port = InMemoryLedgerAdapter(collateral_token=self.settings.COLLATERAL_TOKEN)
        return self._store_port

    def get_custody_port(self) -> CustodyPort:
        """Get collateral token implementation."""
        if self._custody_port is None:
            from futures_ledger.infrastructure.adapters.custody.memory_token_adapter import InMemoryTokenAdapter
            self._custody_port = InMemoryTokenAdapter(
                token_id=self.settings.COLLATERAL_TOKEN or "collateral-token"
            )
        return self._custody_port

    def get_lock_port(self) -> LockPort:
        """Get lock implementation."""
        if self._lock_port is None:
            from futures_ledger.infrastructure.adapters.persistence.memory_lock_adapter import InMemoryLockAdapter
            self._lock_port = InMemoryLockAdapter()
        return self._lock_port

    # --- Domain Services ---

    def get_access_control(self) -> AccessControl:
        if self._access_control is None:
            self._access_control = AccessControl(owner=self.settings.OWNER_PRINCIPAL)
        return self._access_control

    def get_margin_engine(self) -> MarginEngine:
        if self._margin_engine is None:
            self._margin_engine = MarginEngine.from_settings(self.settings)
        return self._margin_engine

    # --- Use Case Getters ---

    def get_manage_contracts_use_case(self) -> ManageContractsUseCase:
        """Get ManageContractsUseCase with wired dependencies."""
        if self._manage_contracts_use_case is None:
            self._manage_contracts_use_case = ManageContractsUseCase(
                store=self.get_store_port(),
                access=self.get_access_control(),
                max_symbol_length=self.settings.MAX_SYMBOL_LENGTH,
            )
        return self._manage_contracts_use_case

    def get_publish_price_use_case(self) -> PublishPriceUseCase:
        """Get PublishPriceUseCase with wired dependencies."""
        if self._publish_price_use_case is None:
            self._publish_price_use_case = PublishPriceUseCase(
                store=self.get_store_port(),
                access=self.get_access_control(),
                max_symbol_length=self.settings.MAX_SYMBOL_LENGTH,
            )
        return self._publish_price_use_case

    def get_trade_position_use_case(self) -> TradePositionUseCase:
        """Get TradePositionUseCase with wired dependencies."""
        if self._trade_position_use_case is None:
            self._trade_position_use_case = TradePositionUseCase(
                store=self.get_store_port(),
                custody=self.get_custody_port(),
                margin=self.get_margin_engine(),
                access=self.get_access_control(),
                custody_principal=self.settings.CUSTODY_PRINCIPAL,
            )
        return self._trade_position_use_case

    def get_ledger_service(self) -> LedgerService:
        """Get LedgerService with wired dependencies."""
        if self._ledger_service is None:
            self._ledger_service = LedgerService(
                store=self.get_store_port(),
                lock=self.get_lock_port(),
                contracts=self.get_manage_contracts_use_case(),
                prices=self.get_publish_price_use_case(),
                positions=self.get_trade_position_use_case(),
                margin=self.get_margin_engine(),
            )
        return self._ledger_service
