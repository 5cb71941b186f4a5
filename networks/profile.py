"""
Network Profile
Connection and deployment parameters for one EVM network
"""

import base64
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple
from urllib.parse import urlparse

from deployer.exceptions import InvalidProfileError

RPC_URL_SCHEMES = ('http', 'https', 'ws', 'wss')

# Template values copied from sample configs
PLACEHOLDER_PATTERN = re.compile(
    r"YOUR_|CHANGE_?ME|PLACEHOLDER|REPLACE_?ME|<[^>]*>|^x{3,}$",
    re.IGNORECASE
)


def is_placeholder(value: str) -> bool:
    """Check whether a credential is an unfilled template value"""
    return bool(PLACEHOLDER_PATTERN.search(value.strip()))


def basic_auth_header(username: str, secret: str) -> str:
    """Build an HTTP Basic Authorization header value"""
    token = base64.b64encode(f"{username}:{secret}".encode()).decode()
    return f"Basic {token}"


@dataclass(frozen=True)
class NetworkProfile:
    """
    Deployment target

    Immutable once built. `accounts` and `auth_headers` hold secrets and
    are left out of repr().
    """

    name: str
    rpc_url: str
    accounts: Tuple[str, ...] = field(default=(), repr=False)
    auth_headers: Mapping[str, str] = field(default_factory=dict, repr=False, hash=False)
    chain_id: Optional[int] = None
    gas_limit: Optional[int] = None
    explorer_api_url: Optional[str] = None
    native_token_symbol: str = 'ETH'
    price_feed_id: Optional[str] = None

    def __post_init__(self):
        # Freeze mutable inputs
        object.__setattr__(self, 'accounts', tuple(self.accounts))
        object.__setattr__(self, 'auth_headers', MappingProxyType(dict(self.auth_headers)))

    @property
    def deployer_key(self) -> str:
        """First account, used to sign deployments"""
        if not self.accounts:
            raise InvalidProfileError(f"Network '{self.name}' has no accounts")
        return self.accounts[0]

    def validate(self):
        """
        Validate profile fields

        Raises:
            InvalidProfileError: On any malformed field
        """
        if not self.name or not self.name.strip():
            raise InvalidProfileError("Network name must not be empty")

        if not _is_valid_url(self.rpc_url):
            raise InvalidProfileError(
                f"Network '{self.name}' has a malformed rpc_url: {self.rpc_url!r}"
            )

        if not self.accounts:
            raise InvalidProfileError(f"Network '{self.name}' has no accounts")

        for index, account in enumerate(self.accounts):
            if not isinstance(account, str) or not account.strip():
                raise InvalidProfileError(f"Network '{self.name}' account #{index} is empty")
            if is_placeholder(account):
                raise InvalidProfileError(
                    f"Network '{self.name}' account #{index} is a placeholder value"
                )

        for header, value in self.auth_headers.items():
            if not isinstance(value, str) or is_placeholder(value):
                raise InvalidProfileError(
                    f"Network '{self.name}' header '{header}' is a placeholder value"
                )

        _check_positive(self.name, 'chain_id', self.chain_id)
        _check_positive(self.name, 'gas_limit', self.gas_limit)

        if self.explorer_api_url is not None and not _is_valid_url(self.explorer_api_url):
            raise InvalidProfileError(
                f"Network '{self.name}' has a malformed explorer_api_url"
            )


def _is_valid_url(url) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
        # Accessing port validates it
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in RPC_URL_SCHEMES and bool(parsed.hostname)


def _check_positive(name: str, field_name: str, value):
    if value is None:
        return
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidProfileError(
            f"Network '{name}' {field_name} must be a positive integer, got {value!r}"
        )
