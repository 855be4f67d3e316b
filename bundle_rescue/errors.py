"""Failure taxonomy for building and submitting a rescue bundle."""


class RescueError(Exception):
    """Base class for every error the rescue flow raises on purpose."""


class ConfigError(RescueError):
    """Raised when the environment or CLI flags cannot produce valid settings."""


class PlanError(RescueError):
    """Raised when a rescue plan cannot produce its operations."""


class EstimationFailed(RescueError):
    def __init__(self, index: int, cause: BaseException):
        super().__init__(f"gas estimation failed for operation {index}: {cause}")
        self.index = index
        self.cause = cause


class FundingOverflow(RescueError):
    def __init__(self, value: int):
        super().__init__(f"funding value {value} does not fit in uint256")
        self.value = value


class SimulationRejected(RescueError):
    def __init__(self, index: int, cause):
        super().__init__(f"simulation reverted at bundle slot {index}: {cause}")
        self.index = index
        self.cause = cause


class SubmissionTransportError(RescueError):
    """Relay or network failure while sending a bundle; retried next block."""


class NonceInvalid(RescueError):
    def __init__(self, target_block: int):
        super().__init__(
            f"account nonce moved past the bundle while targeting block {target_block}; "
            "the bundle must be rebuilt"
        )
        self.target_block = target_block


class UnrecognizedResolution(RescueError):
    def __init__(self, resolution):
        super().__init__(f"relay returned an unknown bundle resolution: {resolution!r}")
        self.resolution = resolution
