"""
Network Loader
Builds the registry from config/networks.json plus environment secrets
"""

import json
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger
from dotenv import load_dotenv

from deployer.exceptions import ConfigError, InvalidProfileError
from .profile import NetworkProfile, basic_auth_header, is_placeholder
from .registry import NetworkRegistry

load_dotenv()

DEFAULT_NETWORKS_CONFIG = "config/networks.json"


def load_registry(config_path: Union[str, Path] = DEFAULT_NETWORKS_CONFIG) -> NetworkRegistry:
    """
    Load every configured network whose credentials are available

    Args:
        config_path: Path to the networks JSON file

    Returns:
        Populated NetworkRegistry

    Raises:
        ConfigError: Config file missing or malformed
        InvalidProfileError: Credentials present but invalid
    """
    config = _load_config(Path(config_path))

    registry = NetworkRegistry()
    skipped = []

    for name, network_config in config.items():
        profile = profile_from_config(name, network_config)
        if profile is None:
            skipped.append(name)
            continue
        registry.register(profile)

    logger.info(f"Loaded {len(registry)} network(s): {', '.join(registry.names()) or 'none'}")
    if skipped:
        logger.warning(f"Skipped networks without credentials: {', '.join(skipped)}")

    return registry


def _load_config(config_path: Path) -> Dict:
    if not config_path.exists():
        raise ConfigError(f"Network config not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Malformed network config {config_path}: {e}") from e

    networks = data.get('networks') if isinstance(data, dict) else None
    if not isinstance(networks, dict):
        raise ConfigError(f"{config_path} must contain a 'networks' object")

    return networks


def profile_from_config(name: str, network_config: Dict) -> Optional[NetworkProfile]:
    """
    Build a profile from one config entry

    Returns None when a referenced credential variable is unset, so the
    network is simply unavailable in this environment.
    """
    if not isinstance(network_config, dict):
        raise ConfigError(f"Network '{name}' config must be an object")

    rpc_url = network_config.get('rpc_url')
    rpc_url_env = network_config.get('rpc_url_env')
    if rpc_url_env and os.getenv(rpc_url_env):
        rpc_url = os.getenv(rpc_url_env)
    if not rpc_url:
        logger.warning(f"Network {name}: no rpc_url configured")
        return None

    accounts = _read_env_list(name, network_config.get('accounts_env', []))
    if accounts is None:
        return None

    headers = dict(network_config.get('headers', {}))
    basic_auth = network_config.get('basic_auth')
    if basic_auth:
        credential_vars = [basic_auth.get('username_env'), basic_auth.get('password_env')]
        credentials = _read_env_list(name, credential_vars)
        if credentials is None:
            return None
        # Checked before encoding; the base64 header hides template values
        for env_var, value in zip(credential_vars, credentials):
            if is_placeholder(value):
                raise InvalidProfileError(f"Network '{name}' {env_var} is a placeholder value")
        headers['Authorization'] = basic_auth_header(*credentials)

    return NetworkProfile(
        name=name,
        rpc_url=rpc_url,
        accounts=tuple(accounts),
        auth_headers=headers,
        chain_id=network_config.get('chain_id'),
        gas_limit=network_config.get('gas_limit'),
        explorer_api_url=network_config.get('explorer_api_url'),
        native_token_symbol=network_config.get('native_token_symbol', 'ETH'),
        price_feed_id=network_config.get('price_feed_id'),
    )


def _read_env_list(name: str, env_vars: List[Optional[str]]) -> Optional[List[str]]:
    values = []
    for env_var in env_vars:
        value = os.getenv(env_var) if env_var else None
        if not value:
            logger.debug(f"Network {name}: {env_var} not set")
            return None
        values.append(value.strip())
    return values
