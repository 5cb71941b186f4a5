"""
Shared test fixtures
"""

import json
from unittest.mock import AsyncMock, Mock

import pytest
from web3.datastructures import AttributeDict

from blockchain.contract_spec import ContractSpec
from networks.profile import NetworkProfile
from networks.registry import NetworkRegistry

# Well-known throwaway key from the web3.py docs
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

TX_HASH = "0x" + "ab" * 32
CONTRACT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"

AMOCOIN_ABI = [
    {"inputs": [], "stateMutability": "nonpayable", "type": "constructor"},
    {
        "inputs": [],
        "name": "totalSupply",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function"
    }
]
AMOCOIN_BYTECODE = "0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe"


@pytest.fixture
def local_profile():
    """Local Hardhat node profile"""
    return NetworkProfile(
        name="local",
        rpc_url="http://localhost:8545",
        accounts=("0xKEY",),
        chain_id=31337,
        gas_limit=8500000
    )


@pytest.fixture
def signing_profile():
    """Profile with a real (throwaway) private key"""
    return NetworkProfile(
        name="local",
        rpc_url="http://localhost:8545",
        accounts=(TEST_PRIVATE_KEY,),
        auth_headers={"x-chain-id": "31337"},
        chain_id=31337,
        gas_limit=8500000
    )


@pytest.fixture
def registry(local_profile):
    registry = NetworkRegistry()
    registry.register(local_profile)
    return registry


@pytest.fixture
def amocoin_spec():
    """AmoCoin contract spec"""
    return ContractSpec(name="AmoCoin", abi=AMOCOIN_ABI, bytecode=AMOCOIN_BYTECODE)


@pytest.fixture
def receipt():
    """Successful deployment receipt"""
    return AttributeDict({
        'transactionHash': TX_HASH,
        'status': 1,
        'contractAddress': CONTRACT_ADDRESS,
        'blockNumber': 1,
        'gasUsed': 250000,
        'effectiveGasPrice': 25 * 10**9,
    })


@pytest.fixture
def client(receipt):
    """Mock chain client"""
    client = Mock()
    client.address = TEST_ADDRESS
    client.connect = AsyncMock(return_value=31337)
    client.build_deployment = AsyncMock(return_value={'nonce': 0, 'gas': 8500000})
    client.submit = AsyncMock(return_value=TX_HASH)
    client.await_confirmation = AsyncMock(return_value=receipt)
    client.get_receipt = AsyncMock(return_value=None)
    client.is_known = AsyncMock(return_value=True)
    client.balance = AsyncMock(return_value=10**18)
    client.close = AsyncMock()
    return client


@pytest.fixture
def client_factory(client):
    return Mock(return_value=client)


@pytest.fixture
def hardhat_artifacts(tmp_path):
    """Minimal Hardhat artifacts tree for AmoCoin"""
    artifacts_dir = tmp_path / "artifacts"
    contract_dir = artifacts_dir / "contracts" / "AmoCoin.sol"
    build_info_dir = artifacts_dir / "build-info"
    contract_dir.mkdir(parents=True)
    build_info_dir.mkdir(parents=True)

    (contract_dir / "AmoCoin.json").write_text(json.dumps({
        "_format": "hh-sol-artifact-1",
        "contractName": "AmoCoin",
        "sourceName": "contracts/AmoCoin.sol",
        "abi": AMOCOIN_ABI,
        "bytecode": AMOCOIN_BYTECODE,
        "deployedBytecode": "0x",
    }))
    (contract_dir / "AmoCoin.dbg.json").write_text(json.dumps({
        "_format": "hh-sol-dbg-1",
        "buildInfo": "../../build-info/abc123.json",
    }))
    (build_info_dir / "abc123.json").write_text(json.dumps({
        "solcVersion": "0.8.10",
        "solcLongVersion": "0.8.10+commit.fc410830",
        "input": {"language": "Solidity", "sources": {}, "settings": {}},
    }))

    return artifacts_dir
