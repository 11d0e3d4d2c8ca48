"""Exception types raised by autoread."""


class AutoreadError(Exception):
    """Base class for autoread failures."""
    pass


class ConfigurationError(AutoreadError):
    """Raised when configuration is invalid or cannot be loaded."""
    pass


class LockTimeoutError(AutoreadError):
    """Raised when a session lock cannot be acquired within the timeout."""

    def __init__(self, lock_path, timeout: float):
        self.lock_path = lock_path
        self.timeout = timeout
        super().__init__(f"Failed to acquire lock {lock_path} after {timeout:.2f}s")
