"""
Contract Deployment
Deploys a compiled contract (AmoCoin by default) to a configured network

Usage:
    python deploy.py --network baobab
    python deploy.py --network local --contract AmoCoin --args '["0xabc...", 1000]'
"""

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from loguru import logger
from dotenv import load_dotenv

from blockchain.contract_spec import ContractSpec
from deployer.exceptions import DeploymentError, VerificationError
from deployer.executor import DeploymentExecutor
from deployer.result import DeploymentResult
from networks.loader import DEFAULT_NETWORKS_CONFIG, load_registry
from networks.registry import NetworkRegistry
from utils.gas_reporter import GasReporter
from utils.tx_journal import TransactionJournal
from utils.verifier import ContractVerifier

load_dotenv()

DEFAULT_SETTINGS_PATH = "config/deploy_config.json"

DEFAULT_SETTINGS = {
    'contract': 'AmoCoin',
    'artifacts_dir': 'artifacts',
    'confirmation_timeout': 300,
    'poll_latency': 2,
    'journal_path': 'data/deployments/journal.json',
    'log_dir': 'data/logs',
}


def configure_logging(log_dir: Optional[str] = None, level: Optional[str] = None):
    """stderr sink at INFO (or LOG_LEVEL), rotating file sink at DEBUG"""
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level or os.getenv('LOG_LEVEL', 'INFO')
    )
    if log_dir:
        logger.add(
            os.path.join(log_dir, "deploy.log"),
            rotation="1 day",
            retention="7 days",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}",
            level="DEBUG"
        )


def load_settings(path: str = DEFAULT_SETTINGS_PATH) -> Dict[str, Any]:
    """Deployment defaults, overridden by the settings file when present"""
    settings = dict(DEFAULT_SETTINGS)
    if Path(path).exists():
        try:
            with open(path, 'r') as f:
                settings.update(json.load(f))
        except (json.JSONDecodeError, TypeError, ValueError) as e:
            raise click.FileError(path, hint=f"malformed settings: {e}") from e
    return settings


def parse_constructor_args(raw: str) -> list:
    try:
        args = json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--args")
    if not isinstance(args, list):
        raise click.BadParameter("must be a JSON list", param_hint="--args")
    return args


async def run_deployment(
    registry: NetworkRegistry,
    network: str,
    contract_spec: ContractSpec,
    settings: Dict[str, Any],
    verify: bool = False,
    force: bool = False
) -> DeploymentResult:
    """
    Deploy, or finish an earlier unconfirmed deployment of the same contract

    Args:
        registry: Loaded network registry
        network: Target network name
        contract_spec: Contract to deploy
        settings: Deployment settings
        verify: Publish sources to the explorer afterwards
        force: Ignore an unconfirmed journal entry and submit a new transaction
    """
    journal = TransactionJournal(settings['journal_path'])
    executor = DeploymentExecutor(
        registry,
        journal=journal,
        gas_reporter=GasReporter(),
        confirmation_timeout=settings['confirmation_timeout'],
        poll_latency=settings['poll_latency']
    )

    pending = None if force else journal.pending(network, contract_spec.name)
    if pending is not None:
        logger.warning(
            f"Found unconfirmed {contract_spec.name} deployment {pending.transaction_hash} "
            f"on {network}; checking it instead of resubmitting (use --force to override)"
        )
        result = await executor.recover(network, contract_spec.name, pending.transaction_hash)
    else:
        result = await executor.deploy(network, contract_spec)

    if verify:
        await verify_deployment(registry, result, contract_spec)

    return result


async def verify_deployment(
    registry: NetworkRegistry,
    result: DeploymentResult,
    contract_spec: ContractSpec
):
    """Explorer verification; a failure here never fails the deployment"""
    profile = registry.resolve(result.network)
    if not profile.explorer_api_url:
        logger.warning(f"No explorer_api_url configured for {profile.name}, skipping verification")
        return

    try:
        verifier = ContractVerifier(profile.explorer_api_url)
        await verifier.verify(contract_spec, result.contract_address)
    except VerificationError as e:
        logger.warning(f"Verification failed: {e}")


@click.command()
@click.option("--network", "-n", help="Target network name (see --list)")
@click.option("--contract", "-c", default=None, help="Contract name (default from settings)")
@click.option("--artifacts", default=None, help="Hardhat artifacts directory")
@click.option("--args", "raw_args", default="[]", help="Constructor arguments as a JSON list")
@click.option("--config", "networks_config", default=DEFAULT_NETWORKS_CONFIG,
              help="Network configuration file")
@click.option("--settings", "settings_path", default=DEFAULT_SETTINGS_PATH,
              help="Deployment settings file")
@click.option("--timeout", type=click.IntRange(min=1), default=None,
              help="Seconds to wait for confirmation")
@click.option("--verify", is_flag=True, help="Verify the source on the network explorer")
@click.option("--force", is_flag=True, help="Submit even if an unconfirmed deployment exists")
@click.option("--list", "list_networks", is_flag=True, help="List configured networks and exit")
def main(
    network,
    contract,
    artifacts,
    raw_args,
    networks_config,
    settings_path,
    timeout,
    verify,
    force,
    list_networks
):
    """Deploy a compiled contract to NETWORK and print its address"""
    settings = load_settings(settings_path)
    configure_logging(settings.get('log_dir'))

    if timeout is not None:
        settings['confirmation_timeout'] = timeout

    try:
        registry = load_registry(networks_config)

        if list_networks:
            for profile in registry:
                chain = profile.chain_id if profile.chain_id is not None else '-'
                click.echo(f"{profile.name}\tchain {chain}\t{profile.rpc_url}")
            sys.exit(0)

        if not network:
            raise click.UsageError("Missing option '--network'")

        # Unknown networks fail before anything else is touched
        registry.resolve(network)

        contract_spec = ContractSpec.from_hardhat(
            contract or settings['contract'],
            artifacts or settings['artifacts_dir'],
            constructor_args=parse_constructor_args(raw_args)
        )

        result = asyncio.run(run_deployment(
            registry, network, contract_spec, settings, verify=verify, force=force
        ))

    except DeploymentError as e:
        logger.error(f"Deployment failed: {e}")
        click.echo(f"Error: {e}")
        sys.exit(1)

    click.echo(f"{result.contract_name} deployed to: {result.contract_address}")
    sys.exit(0)


if __name__ == "__main__":
    main()
