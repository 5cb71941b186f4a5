"""
Transaction Journal
Persists submitted deployments so a retry can re-check before resubmitting
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Union

from loguru import logger

from deployer.exceptions import ConfigError
from deployer.result import DeploymentResult


class TransactionJournal:
    """
    JSON file of the latest deployment per network/contract

    The transaction hash is written before the confirmation wait starts,
    so an interrupted run leaves a PENDING entry behind.
    """

    def __init__(self, path: Union[str, Path] = "data/deployments/journal.json"):
        """
        Initialize Transaction Journal

        Args:
            path: Journal file location
        """
        self.path = Path(path)
        logger.debug(f"Transaction journal: {self.path}")

    @staticmethod
    def _key(network: str, contract_name: str) -> str:
        return f"{network}:{contract_name}"

    def _read(self) -> Dict[str, Dict]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                entries = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(
                f"Corrupt deployment journal {self.path}: {e}. Fix or remove it to continue"
            ) from e

        if not isinstance(entries, dict):
            raise ConfigError(f"Corrupt deployment journal {self.path}: expected an object")
        return entries

    def _write(self, entries: Dict[str, Dict]):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp file and swap so a crash never leaves half a file
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(entries, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def record(self, result: DeploymentResult):
        """Store (or overwrite) the entry for result's network/contract"""
        entries = self._read()
        entries[self._key(result.network, result.contract_name)] = result.to_dict()
        self._write(entries)

        logger.debug(
            f"Journaled {result.contract_name}@{result.network}: "
            f"{result.transaction_hash} ({result.status.value})"
        )

    def latest(self, network: str, contract_name: str) -> Optional[DeploymentResult]:
        data = self._read().get(self._key(network, contract_name))
        if data is None:
            return None
        try:
            return DeploymentResult.from_dict(data)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Corrupt journal entry for {contract_name}@{network} in {self.path}: {e}"
            ) from e

    def pending(self, network: str, contract_name: str) -> Optional[DeploymentResult]:
        """Latest entry if it never reached a final state"""
        result = self.latest(network, contract_name)
        if result is not None and result.is_pending:
            return result
        return None
