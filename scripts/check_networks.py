"""
Network Check Script
Verifies every configured network before deploying to it

Usage:
    python -m scripts.check_networks [--config config/networks.json]
"""

import asyncio
import sys
from typing import List, Tuple

import click
from web3 import Web3
from loguru import logger
from dotenv import load_dotenv

from blockchain.chain_client import ChainClient
from deployer.exceptions import DeploymentError
from networks.loader import DEFAULT_NETWORKS_CONFIG, load_registry
from networks.profile import NetworkProfile
from networks.registry import NetworkRegistry

load_dotenv()

# Below this the deployer is unlikely to afford a deployment
MIN_BALANCE_ETHER = 0.1


async def check_network(profile: NetworkProfile, client_factory=ChainClient) -> bool:
    """Connect, compare chain id and report the deployer balance"""
    logger.info(f"Checking {profile.name}...")

    try:
        client = client_factory(profile)
    except DeploymentError as e:
        logger.error(f"  ✗ {profile.name}: {e}")
        return False

    try:
        chain_id = await client.connect()

        if profile.chain_id is not None and chain_id != profile.chain_id:
            logger.error(
                f"  ✗ {profile.name}: endpoint reports chain id {chain_id}, "
                f"expected {profile.chain_id}"
            )
            return False

        balance = Web3.from_wei(await client.balance(), 'ether')
        logger.info(f"  Deployer {client.address}: {balance:.4f} {profile.native_token_symbol}")

        if balance < MIN_BALANCE_ETHER:
            logger.warning(f"  ⚠ {profile.name}: deployer balance low")

        logger.success(f"  ✓ {profile.name}: connected (chain id {chain_id})")
        return True

    except DeploymentError as e:
        logger.error(f"  ✗ {profile.name}: {e}")
        return False
    finally:
        await client.close()


async def check_all(registry: NetworkRegistry, client_factory=ChainClient) -> List[Tuple[str, bool]]:
    results = []
    for profile in registry:
        results.append((profile.name, await check_network(profile, client_factory)))
    return results


@click.command()
@click.option("--config", "networks_config", default=DEFAULT_NETWORKS_CONFIG,
              help="Network configuration file")
def main(networks_config):
    """Run connectivity checks for all configured networks"""
    logger.info("=" * 70)
    logger.info("Network Check")
    logger.info("=" * 70)

    try:
        registry = load_registry(networks_config)
    except DeploymentError as e:
        logger.error(f"Cannot load networks: {e}")
        sys.exit(1)

    if not len(registry):
        logger.error("No networks have credentials configured (see .env.example)")
        sys.exit(1)

    results = asyncio.run(check_all(registry))

    passed = sum(1 for _, ok in results if ok)
    logger.info("")
    logger.info(f"Total: {passed}/{len(results)} networks ready")

    sys.exit(0 if passed == len(results) else 1)


if __name__ == "__main__":
    main()
