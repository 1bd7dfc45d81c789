class GenerationError(Exception):
    """Raised when the provider call fails or returns no usable image."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
