"""Owner-scoped ledger of student payments, group dues and expenses."""

__version__ = "0.1.0"
