"""
CLI command modules.
"""

from rewards_cli.commands import proof, settle, status, tree

__all__ = ["tree", "proof", "settle", "status"]
