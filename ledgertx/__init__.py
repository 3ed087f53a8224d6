# ledgertx/__init__.py
"""
ledgertx — content-addressed, multi-signature ledger transactions.
Binary codec, two-phase transaction digest and signature-slot bookkeeping
for Events (UTXO style), Relations (account style), Witnesses and CrossRefs.
"""

__version__ = "0.1.0"
