"""Error types raised by the link engine."""


class LinkError(Exception):
    """Base class for all link engine errors."""


class SlugConflictError(LinkError, ValueError):
    """Raised when a slug is already taken."""

    def __init__(self, slug: str):
        super().__init__(f"Slug '{slug}' already exists")
        self.slug = slug


class LinkNotFoundError(LinkError):
    """Raised when a slug does not resolve to a link."""

    def __init__(self, slug: str):
        super().__init__(f"Link '{slug}' not found")
        self.slug = slug


class LinkValidationError(LinkError, ValueError):
    """Raised when a creation request is malformed."""


class StorageError(LinkError):
    """Raised when the underlying store fails."""


class SlugGenerationExhaustedError(LinkError):
    """Raised when no free slug is found within the retry budget.

    This signals a misconfiguration (slug space too small for the number of
    stored links), not a user error.
    """

    def __init__(self, attempts: int, length: int):
        super().__init__(
            f"Unable to generate a free slug of length {length} after {attempts} attempts"
        )
        self.attempts = attempts
        self.length = length
