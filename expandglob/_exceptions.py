class GlobUsageError(ValueError):
    """Raised when a glob or path argument violates a precondition. Subclass of ValueError."""
    def __init__(self, value: object, reason: str) -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid glob input {value!r}: {reason}.")
