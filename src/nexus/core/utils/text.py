"""Text processing utilities."""

import re
import secrets

from nexus.core.constants import MAX_SLUG_LENGTH, SLUG_SUFFIX_LENGTH


def generate_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate a URL-safe slug from a name.

    Converts the input string to a URL-friendly slug by:
    - Converting to lowercase
    - Removing special characters
    - Replacing spaces and hyphens with single hyphens
    - Truncating to max_length

    Args:
        name: The input string to slugify
        max_length: Maximum length of output slug (default 63)

    Returns:
        URL-safe lowercase slug

    Examples:
        >>> generate_slug("My Company Name")
        'my-company-name'
        >>> generate_slug("Hello! World@2024")
        'hello-world2024'
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug[:max_length].strip("-")


def generate_unique_slug(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """Generate a slug with a random hex suffix.

    Examples:
        >>> generate_unique_slug("Acme")  # doctest: +SKIP
        'acme-3f9a1c'
    """
    suffix = secrets.token_hex(SLUG_SUFFIX_LENGTH // 2)
    base = generate_slug(name, max_length - len(suffix) - 1) or "workspace"
    return f"{base}-{suffix}"


def normalize_email(email: str) -> str:
    """Lowercase and trim an email address for comparisons."""
    return email.strip().lower()
