"""
Blockchain Interaction Package
Handles contract artifacts, transaction building and signer-bound RPC access
"""

from .contract_spec import ContractSpec
from .transaction_builder import TransactionBuilder
from .chain_client import ChainClient

__all__ = ['ContractSpec', 'TransactionBuilder', 'ChainClient']
