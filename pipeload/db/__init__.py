"""SQLite persistence: shared store and batch insert."""
