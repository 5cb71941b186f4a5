"""
Utilities Package
Deployment journal, gas reporting and explorer verification
"""

from .tx_journal import TransactionJournal
from .gas_reporter import GasReporter
from .verifier import ContractVerifier

__all__ = [
    'TransactionJournal',
    'GasReporter',
    'ContractVerifier'
]
