"""Value helpers for external identifiers."""

import re

PRODUCT_GID_PREFIX = "gid://shopify/Product/"

_NUMERIC_ID = re.compile(r"^\d+$")


def normalize_product_gid(id_or_gid: str | int | None) -> str:
    """Normalize a product reference to its canonical GID form.

    Numeric ids (``"123"`` or ``123``) become ``gid://shopify/Product/123``;
    anything else is returned trimmed and otherwise untouched. Existence is
    never checked.

    Args:
        id_or_gid: Numeric product id or opaque GID.

    Returns:
        Canonical product GID, or an empty string for blank input.
    """
    if id_or_gid is None:
        return ""
    value = str(id_or_gid).strip()
    if _NUMERIC_ID.match(value):
        return f"{PRODUCT_GID_PREFIX}{value}"
    return value
