"""
Violette CLI

Command-line interface for the Violette ledger core.

Usage:
    python -m violette_cli merkle root entries.json
    python -m violette_cli merkle proof entries.json --index 2
    python -m violette_cli did create --id anon-42 --save-account account.json
    python -m violette_cli did resolve did:xrpl:1:r...
"""

__version__ = "0.1.0"
