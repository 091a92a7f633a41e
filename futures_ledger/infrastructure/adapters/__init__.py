# Infrastructure adapters
