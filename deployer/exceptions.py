"""
Deployment Exceptions
Error taxonomy shared by the registry, chain client and executor
"""


class DeploymentError(Exception):
    """Base exception for everything raised by the deployer"""


class ConfigError(DeploymentError):
    """Configuration is missing or malformed (not retryable until fixed)"""


class InvalidProfileError(ConfigError, ValueError):
    """Network profile failed validation"""


class DuplicateProfileError(ConfigError, ValueError):
    """A profile with the same name is already registered"""


class UnknownProfileError(ConfigError, LookupError):
    """No profile registered under the requested name"""


class ArtifactError(DeploymentError):
    """Compiled contract artifact is missing or unusable"""


class RPCConnectionError(DeploymentError, ConnectionError):
    """RPC endpoint unreachable or authentication rejected"""


class ChainMismatchError(RPCConnectionError):
    """Connected endpoint reports a different chain id than the profile"""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Endpoint reports chain id {actual}, profile expects {expected}"
        )


class SubmissionError(DeploymentError):
    """Node rejected the contract-creation transaction"""


class ConfirmationError(DeploymentError):
    """
    Deployment transaction failed or could not be confirmed

    The transaction may still land. Re-query `result.transaction_hash`
    before submitting again.
    """

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class ConfirmationTimeoutError(ConfirmationError):
    """Confirmation wait timed out; result stays PENDING"""


class InvalidTransitionError(DeploymentError):
    """DeploymentResult already left the PENDING state"""


class VerificationError(DeploymentError):
    """Explorer rejected or failed to verify the contract source"""
