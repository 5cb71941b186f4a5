"""
Network Registry
Holds the validated set of deployable networks
"""

from typing import Dict, Iterator, List

from loguru import logger

from deployer.exceptions import DuplicateProfileError, UnknownProfileError
from .profile import NetworkProfile


class NetworkRegistry:
    """
    In-memory name -> NetworkProfile mapping

    Filled once at startup and only read afterwards, so executors may
    share it without locking.
    """

    def __init__(self):
        self._profiles: Dict[str, NetworkProfile] = {}

    def register(self, profile: NetworkProfile):
        """
        Add a profile

        Args:
            profile: Network profile to add

        Raises:
            DuplicateProfileError: Name already registered
            InvalidProfileError: Profile failed validation
        """
        if profile.name in self._profiles:
            raise DuplicateProfileError(f"Network '{profile.name}' is already registered")

        profile.validate()
        self._profiles[profile.name] = profile

        logger.debug(f"Registered network {profile.name} ({profile.rpc_url})")

    def resolve(self, name: str) -> NetworkProfile:
        """
        Look up a profile by name

        Raises:
            UnknownProfileError: No such network
        """
        try:
            return self._profiles[name]
        except KeyError:
            known = ', '.join(sorted(self._profiles)) or 'none'
            raise UnknownProfileError(
                f"Unknown network '{name}' (configured: {known})"
            ) from None

    def names(self) -> List[str]:
        return sorted(self._profiles)

    def __contains__(self, name: str) -> bool:
        return name in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)

    def __iter__(self) -> Iterator[NetworkProfile]:
        return iter(self._profiles.values())
