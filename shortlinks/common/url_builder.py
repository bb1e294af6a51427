"""URL building utilities."""


def build_short_url(slug: str, forward_url: str) -> str:
    """Build the public short URL for a slug.

    Args:
        slug: The slug
        forward_url: Public base URL of the redirect surface (e.g., https://sho.rt/)

    Returns:
        Complete short URL
    """
    return f"{forward_url.rstrip('/')}/{slug}"
