"""
Deployment Result
Per-run outcome of a contract deployment
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional

from .exceptions import InvalidTransitionError


class DeploymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class DeploymentResult:
    """
    Outcome of one executor run

    Created PENDING once the transaction is submitted and moves to
    CONFIRMED or FAILED exactly once.
    """

    network: str
    contract_name: str
    transaction_hash: str
    status: DeploymentStatus = DeploymentStatus.PENDING
    contract_address: Optional[str] = None
    chain_id: Optional[int] = None
    deployer: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == DeploymentStatus.PENDING

    @property
    def is_confirmed(self) -> bool:
        return self.status == DeploymentStatus.CONFIRMED

    def _ensure_pending(self, target: DeploymentStatus):
        if not self.is_pending:
            raise InvalidTransitionError(
                f"Cannot move {self.transaction_hash} from {self.status.value} to {target.value}"
            )

    def confirm(self, contract_address: str, receipt: Optional[Dict] = None):
        """
        Mark the deployment as confirmed

        Args:
            contract_address: Address assigned to the new contract
            receipt: Transaction receipt (optional, fills gas/block fields)
        """
        self._ensure_pending(DeploymentStatus.CONFIRMED)
        if not contract_address:
            raise InvalidTransitionError("Confirmed deployment needs a contract address")

        self._apply_receipt(receipt)
        self.contract_address = contract_address
        self.status = DeploymentStatus.CONFIRMED

    def fail(self, reason: str, receipt: Optional[Dict] = None):
        """Mark the deployment as failed"""
        self._ensure_pending(DeploymentStatus.FAILED)
        self._apply_receipt(receipt)
        self.error = reason
        self.status = DeploymentStatus.FAILED

    def _apply_receipt(self, receipt: Optional[Dict]):
        if not receipt:
            return
        self.block_number = receipt.get('blockNumber')
        self.gas_used = receipt.get('gasUsed')
        # Klaytn legacy receipts carry gasPrice instead
        self.effective_gas_price = receipt.get('effectiveGasPrice', receipt.get('gasPrice'))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status'] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploymentResult":
        data = dict(data)
        data['status'] = DeploymentStatus(data.get('status', DeploymentStatus.PENDING.value))
        return cls(**data)
