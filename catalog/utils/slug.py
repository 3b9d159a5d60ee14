import re

MAX_SLUG_LENGTH = 255

_SEPARATORS = re.compile(r"[^a-z0-9áéíóúüñ]+")
_HYPHENS = re.compile(r"-+")


def generate_slug(title: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Build a URL slug from a product title.

    Lowercases, keeps ASCII letters, digits and the Spanish accented vowels
    and ñ, turns every other run into a single hyphen and trims hyphens.
    Two identical titles produce identical slugs.
    """
    slug = _SEPARATORS.sub("-", title.lower())
    slug = _HYPHENS.sub("-", slug).strip("-")
    return slug[:max_length].rstrip("-")
