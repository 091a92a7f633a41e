from futures_ledger.infrastructure.adapters.custody.memory_token_adapter import InMemoryTokenAdapter

__all__ = ["InMemoryTokenAdapter"]
