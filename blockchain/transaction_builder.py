"""
Transaction Builder
Constructs contract-creation transactions
"""

import asyncio
from typing import Dict, Optional

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception
from loguru import logger

from deployer.exceptions import RPCConnectionError, SubmissionError
from .contract_spec import ContractSpec

# Transport failures that mean "endpoint unreachable or refused us"
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class TransactionBuilder:
    """
    Builds unsigned deployment transactions for a signer address
    """

    def __init__(self, w3: AsyncWeb3, sender: str):
        """
        Initialize Transaction Builder

        Args:
            w3: AsyncWeb3 instance
            sender: Deployer address
        """
        self.w3 = w3
        self.sender = AsyncWeb3.to_checksum_address(sender)

    async def build_deployment_tx(
        self,
        contract_spec: ContractSpec,
        chain_id: int,
        gas_limit: Optional[int] = None
    ) -> Dict:
        """
        Build a contract-creation transaction

        Args:
            contract_spec: Contract to deploy
            chain_id: Chain id to sign for
            gas_limit: Gas ceiling (None = let the node estimate)

        Returns:
            Transaction dict ready for signing
        """
        Contract = self.w3.eth.contract(abi=contract_spec.abi, bytecode=contract_spec.bytecode)

        try:
            # Include pending transactions
            nonce = await self.w3.eth.get_transaction_count(self.sender, 'pending')

            tx_params = {
                'from': self.sender,
                'nonce': nonce,
                'chainId': chain_id,
            }
            if gas_limit is not None:
                tx_params['gas'] = gas_limit

            transaction = await Contract.constructor(
                *contract_spec.constructor_args
            ).build_transaction(tx_params)

        except TRANSPORT_ERRORS as e:
            raise RPCConnectionError(
                f"Lost connection while building {contract_spec.name} deployment: {e}"
            ) from e
        except (Web3Exception, ValueError, TypeError) as e:
            raise SubmissionError(
                f"Could not build {contract_spec.name} deployment transaction: {e}"
            ) from e

        logger.debug(
            f"Built {contract_spec.name} deployment tx: nonce={transaction['nonce']}, "
            f"gas={transaction.get('gas')}"
        )
        return transaction
