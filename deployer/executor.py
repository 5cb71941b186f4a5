"""
Deployment Executor
Runs one contract deployment: resolve -> bind signer -> submit -> confirm -> report
"""

from functools import partial
from typing import Callable, Dict, Optional

from loguru import logger

from blockchain.chain_client import ChainClient
from blockchain.contract_spec import ContractSpec
from networks.profile import NetworkProfile
from networks.registry import NetworkRegistry
from utils.gas_reporter import GasReporter
from utils.tx_journal import TransactionJournal
from .exceptions import ChainMismatchError, ConfirmationError
from .result import DeploymentResult

ClientFactory = Callable[[NetworkProfile], ChainClient]


class DeploymentExecutor:
    """
    Sequential deployment workflow

    No retries and no internal concurrency: every error propagates to
    the caller. Each run gets its own ChainClient, so separate executors
    may run side by side as long as they use different accounts.
    """

    def __init__(
        self,
        registry: NetworkRegistry,
        client_factory: Optional[ClientFactory] = None,
        journal: Optional[TransactionJournal] = None,
        gas_reporter: Optional[GasReporter] = None,
        confirmation_timeout: float = 300,
        poll_latency: float = 2
    ):
        """
        Initialize Deployment Executor

        Args:
            registry: Network registry to resolve profiles from
            client_factory: Builds a ChainClient for a profile
            journal: Where submitted transactions are persisted
            gas_reporter: Optional gas report after confirmation
            confirmation_timeout: Seconds to wait for a receipt
            poll_latency: Seconds between receipt polls
        """
        self.registry = registry
        self.client_factory = client_factory or partial(
            ChainClient,
            confirmation_timeout=confirmation_timeout,
            poll_latency=poll_latency
        )
        self.journal = journal
        self.gas_reporter = gas_reporter

    async def deploy(self, profile_name: str, contract_spec: ContractSpec) -> DeploymentResult:
        """
        Deploy a contract to the named network

        Args:
            profile_name: Registered network name
            contract_spec: Compiled contract to deploy

        Returns:
            CONFIRMED DeploymentResult

        Raises:
            UnknownProfileError: Network not registered (no I/O attempted)
            RPCConnectionError: Endpoint unreachable, auth rejected or wrong chain
            SubmissionError: Node rejected the transaction
            ConfirmationError: Reverted, or not confirmed in time (see .result)
        """
        profile = self.registry.resolve(profile_name)

        logger.info(f"Deploying {contract_spec.name} to {profile.name}...")

        client = self.client_factory(profile)
        try:
            chain_id = await self._connect(client, profile)
            logger.info(f"Deploying from: {client.address}")

            transaction = await client.build_deployment(contract_spec)
            tx_hash = await client.submit(transaction)

            result = DeploymentResult(
                network=profile.name,
                contract_name=contract_spec.name,
                transaction_hash=tx_hash,
                chain_id=chain_id,
                deployer=client.address,
            )
            # Persist before waiting so an interrupted run can be recovered
            self._record(result)

            await self._confirm(client, result)
        finally:
            await client.close()

        await self._report(result, profile)
        return result

    async def recover(
        self,
        profile_name: str,
        contract_name: str,
        tx_hash: str
    ) -> DeploymentResult:
        """
        Finish a deployment from an already submitted transaction

        Used instead of resubmitting after an interrupted or timed-out run.
        """
        profile = self.registry.resolve(profile_name)

        logger.info(f"Checking earlier {contract_name} deployment {tx_hash} on {profile.name}...")

        client = self.client_factory(profile)
        try:
            chain_id = await self._connect(client, profile)

            result = DeploymentResult(
                network=profile.name,
                contract_name=contract_name,
                transaction_hash=tx_hash,
                chain_id=chain_id,
                deployer=client.address,
            )

            receipt = await client.get_receipt(tx_hash)
            if receipt is not None:
                self._apply_receipt(result, receipt)
            elif not await client.is_known(tx_hash):
                # Evicted from the mempool; it will never be mined
                result.fail("Transaction dropped")
                self._record(result)
                logger.error(f"❌ {tx_hash} is unknown to {profile.name}, it was dropped")
                raise ConfirmationError(result.error, result=result)
            else:
                logger.info(f"{tx_hash} not mined yet, waiting...")
                await self._confirm(client, result)
        finally:
            await client.close()

        await self._report(result, profile)
        return result

    async def _connect(self, client: ChainClient, profile: NetworkProfile) -> int:
        chain_id = await client.connect()

        if profile.chain_id is not None and chain_id != profile.chain_id:
            raise ChainMismatchError(expected=profile.chain_id, actual=chain_id)

        return chain_id

    async def _confirm(self, client: ChainClient, result: DeploymentResult):
        try:
            receipt = await client.await_confirmation(result.transaction_hash)
        except ConfirmationError as e:
            # Outcome unknown: the transaction may still land, keep it PENDING
            e.result = result
            logger.warning(
                f"Deployment {result.transaction_hash} unconfirmed: {e}. "
                "Re-run to check it before resubmitting"
            )
            raise

        self._apply_receipt(result, receipt)

    def _apply_receipt(self, result: DeploymentResult, receipt: Dict):
        if receipt.get('status') != 1:
            result.fail("Deployment transaction reverted", receipt)
        elif not receipt.get('contractAddress'):
            result.fail("Receipt has no contract address", receipt)
        else:
            result.confirm(receipt['contractAddress'], receipt)

        self._record(result)

        if not result.is_confirmed:
            logger.error(f"❌ Deployment failed: {result.error}")
            logger.error(f"Transaction hash: {result.transaction_hash}")
            raise ConfirmationError(result.error, result=result)

    def _record(self, result: DeploymentResult):
        if self.journal is not None:
            self.journal.record(result)

    async def _report(self, result: DeploymentResult, profile: NetworkProfile):
        logger.success(f"✅ {result.contract_name} deployed to {result.network}")
        logger.success(f"Contract address: {result.contract_address}")
        logger.success(f"Transaction hash: {result.transaction_hash}")
        if result.gas_used is not None:
            logger.success(f"Gas used: {result.gas_used}")

        if self.gas_reporter is not None:
            await self.gas_reporter.report(result, profile)
