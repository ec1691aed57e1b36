"""
gemledger CLI Commands Package
"""

__all__ = ['asset', 'ledger']
