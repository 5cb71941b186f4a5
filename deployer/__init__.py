"""
Deployment Package
Result model and error taxonomy; the workflow lives in deployer.executor
"""

from .exceptions import (
    ArtifactError,
    ChainMismatchError,
    ConfigError,
    ConfirmationError,
    ConfirmationTimeoutError,
    DeploymentError,
    DuplicateProfileError,
    InvalidProfileError,
    InvalidTransitionError,
    RPCConnectionError,
    SubmissionError,
    UnknownProfileError,
    VerificationError,
)
from .result import DeploymentResult, DeploymentStatus

__all__ = [
    'DeploymentResult',
    'DeploymentStatus',
    'DeploymentError',
    'ConfigError',
    'InvalidProfileError',
    'DuplicateProfileError',
    'UnknownProfileError',
    'ArtifactError',
    'RPCConnectionError',
    'ChainMismatchError',
    'SubmissionError',
    'ConfirmationError',
    'ConfirmationTimeoutError',
    'InvalidTransitionError',
    'VerificationError',
]
