"""Slug generation."""

import logging
import random
from typing import Optional

from .database.base import LinkStoreBase
from .errors import SlugGenerationExhaustedError


class SlugGenerator:
    """Generate short random slugs that are free in the store."""

    # Base36 characters (digits and lowercase letters)
    ALPHABET = "1234567890abcdefghijklmnopqrstuvwxyz"

    def __init__(
        self,
        length: int = 4,
        max_attempts: int = 100,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize slug generator.

        Args:
            length: Length of generated slugs
            max_attempts: Collision retry budget before giving up
            rng: Random source (a fresh ``random.Random`` if not given)
            logger: Optional logger
        """
        if length < 1:
            raise ValueError("Slug length must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.length = length
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()
        self.logger = logger or logging.getLogger(__name__)

    def generate_random(self) -> str:
        """Draw one slug, each character uniformly from the alphabet."""
        return "".join(self.rng.choices(self.ALPHABET, k=self.length))

    async def generate_unique(self, store: LinkStoreBase) -> str:
        """Draw slugs until one is not taken in ``store``.

        The check is read-only; a concurrent insert of the same slug is caught
        later by the store's unique constraint.

        Raises:
            SlugGenerationExhaustedError: If every attempt collided
        """
        for attempt in range(self.max_attempts):
            slug = self.generate_random()
            if not await store.slug_exists(slug):
                if attempt:
                    self.logger.debug(f"Generated slug after {attempt + 1} attempts: {slug}")
                return slug

        self.logger.critical(
            f"Slug space exhausted: {self.max_attempts} collisions at length {self.length}"
        )
        raise SlugGenerationExhaustedError(self.max_attempts, self.length)

    @classmethod
    def is_valid_format(cls, slug: str) -> bool:
        """Check that ``slug`` only uses generator alphabet characters."""
        return bool(slug) and all(c in cls.ALPHABET for c in slug)


async def generate_unique_slug(store: LinkStoreBase, generator: Optional[SlugGenerator] = None) -> str:
    """Generate a free slug with default settings."""
    return await (generator or SlugGenerator()).generate_unique(store)
