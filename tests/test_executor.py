"""
Unit Tests for the Deployment Executor
"""

from unittest.mock import AsyncMock

import pytest
from web3.datastructures import AttributeDict

from deployer.exceptions import (
    ChainMismatchError,
    ConfirmationError,
    ConfirmationTimeoutError,
    RPCConnectionError,
    SubmissionError,
    UnknownProfileError,
)
from deployer.executor import DeploymentExecutor
from deployer.result import DeploymentResult, DeploymentStatus
from tests.conftest import CONTRACT_ADDRESS, TX_HASH
from utils.tx_journal import TransactionJournal


@pytest.fixture
def journal(tmp_path):
    return TransactionJournal(tmp_path / "journal.json")


@pytest.fixture
def executor(registry, client_factory, journal):
    return DeploymentExecutor(registry, client_factory=client_factory, journal=journal)


class TestDeploy:
    """Test the deploy workflow"""

    @pytest.mark.asyncio
    async def test_successful_deployment(self, executor, client, amocoin_spec):
        """Deploying AmoCoin to the local network confirms with a 20-byte address"""
        result = await executor.deploy("local", amocoin_spec)

        assert result.status == DeploymentStatus.CONFIRMED
        assert result.contract_address == CONTRACT_ADDRESS
        assert len(bytes.fromhex(result.contract_address[2:])) == 20
        assert result.transaction_hash == TX_HASH
        assert result.network == "local"
        assert result.contract_name == "AmoCoin"
        assert result.gas_used == 250000
        assert result.block_number == 1

        client.build_deployment.assert_awaited_once_with(amocoin_spec)
        client.await_confirmation.assert_awaited_once_with(TX_HASH)
        client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_profile_performs_no_io(self, executor, client_factory, client, amocoin_spec):
        with pytest.raises(UnknownProfileError):
            await executor.deploy("nonexistent", amocoin_spec)

        client_factory.assert_not_called()
        client.connect.assert_not_called()
        client.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreachable_endpoint(self, executor, client, journal, amocoin_spec):
        client.connect.side_effect = RPCConnectionError("connection refused")

        with pytest.raises(RPCConnectionError):
            await executor.deploy("local", amocoin_spec)

        client.submit.assert_not_called()
        client.close.assert_awaited_once()
        assert journal.latest("local", "AmoCoin") is None

    @pytest.mark.asyncio
    async def test_chain_id_mismatch(self, executor, client, amocoin_spec):
        client.connect.return_value = 1

        with pytest.raises(ChainMismatchError) as exc_info:
            await executor.deploy("local", amocoin_spec)

        assert exc_info.value.expected == 31337
        assert exc_info.value.actual == 1
        assert isinstance(exc_info.value, RPCConnectionError)
        client.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_submission_rejected(self, executor, client, journal, amocoin_spec):
        client.submit.side_effect = SubmissionError("insufficient funds for gas * price + value")

        with pytest.raises(SubmissionError):
            await executor.deploy("local", amocoin_spec)

        client.await_confirmation.assert_not_called()
        assert journal.latest("local", "AmoCoin") is None

    @pytest.mark.asyncio
    async def test_reverted_deployment(self, executor, client, journal, amocoin_spec):
        client.await_confirmation.return_value = AttributeDict({
            'status': 0,
            'contractAddress': None,
            'blockNumber': 5,
            'gasUsed': 8500000,
        })

        with pytest.raises(ConfirmationError) as exc_info:
            await executor.deploy("local", amocoin_spec)

        result = exc_info.value.result
        assert result.status == DeploymentStatus.FAILED
        assert result.contract_address is None
        assert result.transaction_hash == TX_HASH
        assert journal.latest("local", "AmoCoin").status == DeploymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_confirmation_timeout_leaves_result_pending(self, executor, client, journal, amocoin_spec):
        client.await_confirmation.side_effect = ConfirmationTimeoutError("not confirmed after 300s")

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            await executor.deploy("local", amocoin_spec)

        result = exc_info.value.result
        assert result.status == DeploymentStatus.PENDING
        assert result.transaction_hash == TX_HASH
        assert result.contract_address is None

        pending = journal.pending("local", "AmoCoin")
        assert pending.transaction_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_transaction_journaled_before_confirmation(self, executor, client, journal, amocoin_spec):
        seen = {}

        async def check_journal(tx_hash):
            seen['entry'] = journal.pending("local", "AmoCoin")
            return client.await_confirmation.return_value

        client.await_confirmation.side_effect = check_journal

        await executor.deploy("local", amocoin_spec)

        assert seen['entry'].transaction_hash == TX_HASH
        assert journal.latest("local", "AmoCoin").status == DeploymentStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_runs_gas_reporter(self, registry, client_factory, amocoin_spec, local_profile):
        gas_reporter = AsyncMock()
        executor = DeploymentExecutor(registry, client_factory=client_factory, gas_reporter=gas_reporter)

        result = await executor.deploy("local", amocoin_spec)

        gas_reporter.report.assert_awaited_once_with(result, local_profile)

    @pytest.mark.asyncio
    async def test_works_without_journal(self, registry, client_factory, amocoin_spec):
        executor = DeploymentExecutor(registry, client_factory=client_factory)

        result = await executor.deploy("local", amocoin_spec)

        assert result.is_confirmed


class TestRecover:
    """Test finishing an earlier submission"""

    @pytest.mark.asyncio
    async def test_recover_mined_transaction(self, executor, client, receipt):
        client.get_receipt.return_value = receipt

        result = await executor.recover("local", "AmoCoin", TX_HASH)

        assert result.is_confirmed
        assert result.contract_address == CONTRACT_ADDRESS
        client.submit.assert_not_called()
        client.await_confirmation.assert_not_called()

    @pytest.mark.asyncio
    async def test_recover_waits_for_pending_transaction(self, executor, client):
        result = await executor.recover("local", "AmoCoin", TX_HASH)

        assert result.is_confirmed
        client.await_confirmation.assert_awaited_once_with(TX_HASH)
        client.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_recover_reverted_transaction(self, executor, client):
        client.get_receipt.return_value = AttributeDict({'status': 0, 'contractAddress': None})

        with pytest.raises(ConfirmationError) as exc_info:
            await executor.recover("local", "AmoCoin", TX_HASH)

        assert exc_info.value.result.status == DeploymentStatus.FAILED

    @pytest.mark.asyncio
    async def test_recover_unknown_profile(self, executor, client_factory):
        with pytest.raises(UnknownProfileError):
            await executor.recover("cypress", "AmoCoin", TX_HASH)

        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_recover_dropped_transaction(self, executor, client, journal):
        journal.record(DeploymentResult(network="local", contract_name="AmoCoin", transaction_hash=TX_HASH))
        client.is_known.return_value = False

        with pytest.raises(ConfirmationError) as exc_info:
            await executor.recover("local", "AmoCoin", TX_HASH)

        assert exc_info.value.result.status == DeploymentStatus.FAILED
        assert exc_info.value.result.error == "Transaction dropped"
        client.await_confirmation.assert_not_called()
        # No longer pending, so the next run submits afresh
        assert journal.pending("local", "AmoCoin") is None
        client.close.assert_awaited_once()
