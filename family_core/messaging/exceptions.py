class MessagingError(Exception):
    """Raised when the push-messaging gateway cannot deliver a request."""

    def __init__(self, message: str, *, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self):
        base = f"MessagingError: {self.message}"
        if self.cause:
            return f"{base} (caused by {repr(self.cause)})"
        return base
