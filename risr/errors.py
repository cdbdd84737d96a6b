class RisrError(Exception):
    """Base class for every error raised by risr."""
    pass


class StackFileError(RisrError):
    """Raised when a Stack file cannot be read."""
    pass


class StackValidationError(RisrError):
    """Raised when a Stack document is malformed or misses required fields."""
    pass


class ProviderError(RisrError):
    """Raised when a call to the cloud provider fails."""

    def __init__(self, operation: str, message: str, code: str | None = None):
        self.operation = operation
        self.code = code
        self.message = message
        super().__init__(f"{operation} failed: {message}" + (f" ({code})" if code else ""))


class AlreadyExistsError(ProviderError):
    pass


class InvalidParameterError(ProviderError):
    pass


class TransportError(ProviderError):
    pass


class GroupNotFoundError(RisrError):
    """Raised when the freshly created AutoScaling group cannot be described."""

    def __init__(self, asg_name: str):
        self.asg_name = asg_name
        super().__init__(f"AutoScaling group {asg_name} not found")


class DeploymentCancelled(RisrError):
    """Raised when the caller cancels a deployment while it is polling."""
    pass


class PollTimeoutError(DeploymentCancelled):
    """Raised when the health poll outlives the caller's deadline."""
    pass
