"""
Chain Client
Signer-bound async RPC access for a single network profile
"""

from typing import Dict, Optional

import aiohttp
from eth_account import Account
from web3 import AsyncWeb3, AsyncHTTPProvider
from web3.exceptions import TimeExhausted, TransactionNotFound, Web3Exception
from loguru import logger

from deployer.exceptions import (
    ConfirmationError,
    ConfirmationTimeoutError,
    InvalidProfileError,
    RPCConnectionError,
    SubmissionError,
)
from networks.profile import NetworkProfile
from .contract_spec import ContractSpec
from .transaction_builder import TRANSPORT_ERRORS, TransactionBuilder


class ChainClient:
    """
    RPC client bound to one profile and its first account

    One instance per deployment run; nothing is shared between runs.
    """

    def __init__(
        self,
        profile: NetworkProfile,
        confirmation_timeout: float = 300,
        poll_latency: float = 2,
        request_timeout: float = 30
    ):
        """
        Initialize Chain Client

        Args:
            profile: Network profile to connect to
            confirmation_timeout: Seconds to wait for a receipt
            poll_latency: Seconds between receipt polls
            request_timeout: Per-request HTTP timeout in seconds
        """
        self.profile = profile
        self.confirmation_timeout = confirmation_timeout
        self.poll_latency = poll_latency

        try:
            self.account = Account.from_key(profile.deployer_key)
        except ValueError as e:
            # Never echo the key itself
            raise InvalidProfileError(
                f"Network '{profile.name}' account #0 is not a valid private key"
            ) from e

        self.w3 = AsyncWeb3(AsyncHTTPProvider(
            profile.rpc_url,
            request_kwargs={
                'headers': dict(profile.auth_headers),
                'timeout': aiohttp.ClientTimeout(total=request_timeout),
            }
        ))
        self.transaction_builder = TransactionBuilder(self.w3, self.account.address)
        self._chain_id: Optional[int] = None

    @property
    def address(self) -> str:
        return self.account.address

    async def connect(self) -> int:
        """
        Verify the endpoint answers and accepts our credentials

        Returns:
            Chain id reported by the endpoint

        Raises:
            RPCConnectionError: Endpoint unreachable or auth rejected
        """
        try:
            self._chain_id = await self.w3.eth.chain_id
        except TRANSPORT_ERRORS + (Web3Exception,) as e:
            raise RPCConnectionError(
                f"Cannot reach {self.profile.name} at {self.profile.rpc_url}: {e}"
            ) from e

        logger.info(f"Connected to {self.profile.name} (chain id {self._chain_id})")
        return self._chain_id

    async def chain_id(self) -> int:
        if self._chain_id is None:
            return await self.connect()
        return self._chain_id

    async def balance(self) -> int:
        """Deployer balance in wei"""
        try:
            return await self.w3.eth.get_balance(self.address)
        except TRANSPORT_ERRORS + (Web3Exception,) as e:
            raise RPCConnectionError(f"Balance query failed on {self.profile.name}: {e}") from e

    async def build_deployment(self, contract_spec: ContractSpec) -> Dict:
        """Build the unsigned creation tx capped at the profile gas limit"""
        return await self.transaction_builder.build_deployment_tx(
            contract_spec,
            chain_id=await self.chain_id(),
            gas_limit=self.profile.gas_limit
        )

    async def submit(self, transaction: Dict) -> str:
        """
        Sign and broadcast a transaction

        Args:
            transaction: Unsigned transaction dict

        Returns:
            Transaction hash (0x-prefixed)

        Raises:
            SubmissionError: Node rejected the transaction
        """
        signed_tx = self.account.sign_transaction(transaction)

        try:
            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        except (Web3Exception, ValueError) + TRANSPORT_ERRORS as e:
            raise SubmissionError(f"{self.profile.name} rejected transaction: {e}") from e

        tx_hash = AsyncWeb3.to_hex(tx_hash)
        logger.info(f"Transaction sent: {tx_hash}")
        return tx_hash

    async def await_confirmation(self, tx_hash: str) -> Dict:
        """
        Wait for the transaction to be included in a block

        Raises:
            ConfirmationTimeoutError: No receipt within confirmation_timeout
        """
        logger.info(f"Waiting for confirmation of {tx_hash}...")

        try:
            return await self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.confirmation_timeout,
                poll_latency=self.poll_latency
            )
        except TimeExhausted as e:
            raise ConfirmationTimeoutError(
                f"{tx_hash} not confirmed after {self.confirmation_timeout}s"
            ) from e
        except TRANSPORT_ERRORS as e:
            raise ConfirmationError(f"Lost connection while waiting for {tx_hash}: {e}") from e
        except Web3Exception as e:
            raise ConfirmationError(f"Receipt query for {tx_hash} failed: {e}") from e

    async def get_receipt(self, tx_hash: str) -> Optional[Dict]:
        """Receipt for tx_hash, or None if the node doesn't know it (yet)"""
        try:
            return await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        except TRANSPORT_ERRORS + (Web3Exception,) as e:
            raise RPCConnectionError(f"Receipt query failed on {self.profile.name}: {e}") from e

    async def is_known(self, tx_hash: str) -> bool:
        """Whether the node still has tx_hash (mined or in its mempool)"""
        try:
            await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return False
        except TRANSPORT_ERRORS + (Web3Exception,) as e:
            raise RPCConnectionError(f"Transaction query failed on {self.profile.name}: {e}") from e
        return True

    async def close(self):
        await self.w3.provider.disconnect()
