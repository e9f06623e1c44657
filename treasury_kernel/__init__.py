"""
Treasury Kernel - classroom tax and treasury ledger.

A small ledger for classroom economies with:
- Per-class tax rates merged over built-in defaults
- Integer (floor) tax computation per tax family
- Atomic treasury increments, standalone or joined to a caller transaction
- Append-only tax records for standalone postings
"""

__version__ = "0.1.0"
