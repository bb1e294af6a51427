"""Link resolution and click tracking engine."""

from .clicks import ClickRecorder
from .resolver import RequestMetadata, Resolver
from .service import LinkService
from .slugs import SlugGenerator, generate_unique_slug
from .sweeper import ExpirySweeper, SweepResult

__all__ = [
    "ClickRecorder",
    "ExpirySweeper",
    "LinkService",
    "RequestMetadata",
    "Resolver",
    "SlugGenerator",
    "SweepResult",
    "generate_unique_slug",
]
