"""
CLI command modules.
"""

from violette_cli.commands import did, merkle

__all__ = ["did", "merkle"]
