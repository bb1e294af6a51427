"""Tests for slug generation."""

import random
import re

import pytest

from shortlinks.errors import SlugGenerationExhaustedError
from shortlinks.slugs import SlugGenerator, generate_unique_slug


class FakeStore:
    """Store stand-in answering existence checks from a set."""

    def __init__(self, taken=(), always_taken=False):
        self.taken = set(taken)
        self.always_taken = always_taken
        self.checks = 0

    async def slug_exists(self, slug):
        self.checks += 1
        return self.always_taken or slug in self.taken


class TestSlugGenerator:
    """Test slug generation."""

    def test_generate_random(self):
        """Generated slugs are 4 characters of [0-9a-z]."""
        generator = SlugGenerator()

        for _ in range(200):
            slug = generator.generate_random()
            assert len(slug) == 4
            assert re.fullmatch(r"[0-9a-z]{4}", slug)
            assert generator.is_valid_format(slug)

    def test_alphabet(self):
        assert len(SlugGenerator.ALPHABET) == 36
        assert set(SlugGenerator.ALPHABET) == set("0123456789abcdefghijklmnopqrstuvwxyz")

    def test_custom_length(self):
        generator = SlugGenerator(length=7)
        assert len(generator.generate_random()) == 7

    def test_seeded_rng_is_reproducible(self):
        first = SlugGenerator(rng=random.Random(42)).generate_random()
        second = SlugGenerator(rng=random.Random(42)).generate_random()
        assert first == second

    def test_invalid_settings(self):
        with pytest.raises(ValueError):
            SlugGenerator(length=0)
        with pytest.raises(ValueError):
            SlugGenerator(max_attempts=0)

    def test_is_valid_format(self):
        assert SlugGenerator.is_valid_format("a1b2")
        assert not SlugGenerator.is_valid_format("ABCD")
        assert not SlugGenerator.is_valid_format("ab-c")
        assert not SlugGenerator.is_valid_format("")

    async def test_generate_unique_skips_taken(self):
        """A slug already in the store is never returned."""
        rng = random.Random(7)
        taken = SlugGenerator(rng=random.Random(7)).generate_random()
        store = FakeStore(taken={taken})

        slug = await SlugGenerator(rng=rng).generate_unique(store)

        assert slug != taken
        assert store.checks == 2

    async def test_generate_unique_exhausted(self):
        """An exhausted retry budget raises instead of looping forever."""
        store = FakeStore(always_taken=True)
        generator = SlugGenerator(max_attempts=5)

        with pytest.raises(SlugGenerationExhaustedError) as exc_info:
            await generator.generate_unique(store)

        assert exc_info.value.attempts == 5
        assert store.checks == 5

    async def test_generate_unique_slug_function(self):
        slug = await generate_unique_slug(FakeStore())
        assert len(slug) == 4
