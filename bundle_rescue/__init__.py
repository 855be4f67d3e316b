"""
bundle_rescue

Assemble dependent operations into one sponsor-funded private bundle and
drive it through block-targeted relay submission until it lands or fails.
"""

from .errors import (
    ConfigError,
    EstimationFailed,
    FundingOverflow,
    NonceInvalid,
    PlanError,
    RescueError,
    SimulationRejected,
    SubmissionTransportError,
    UnrecognizedResolution,
)
from .models import (
    BlockHeader,
    Bundle,
    Identity,
    Operation,
    OperationSet,
    Resolution,
    SignedBundle,
    SignedSlot,
    SimulationResult,
    SubmissionAttempt,
)

__version__ = "0.1.0"

__all__ = [
    "BlockHeader",
    "Bundle",
    "ConfigError",
    "EstimationFailed",
    "FundingOverflow",
    "Identity",
    "NonceInvalid",
    "Operation",
    "OperationSet",
    "PlanError",
    "RescueError",
    "Resolution",
    "SignedBundle",
    "SignedSlot",
    "SimulationRejected",
    "SimulationResult",
    "SubmissionAttempt",
    "SubmissionTransportError",
    "UnrecognizedResolution",
]
