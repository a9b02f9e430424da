"""
Fleet Kernel - trucking operations core.

Vehicles, customers, locations, expense categories, trips and expenses with:
- Trip lifecycle enforcement (draft -> ongoing -> completed | cancelled)
- Expense-to-trip reconciliation inside the caller's transaction
- Uniform soft-delete visibility
- Typed, code-carrying exceptions and structured JSON logging
"""

__version__ = "0.1.0"
