import re


def normalize_brand(text: str, brand: str) -> str:
    """Canonicalize every case variant of `brand` in `text` to its configured spelling."""
    if not brand:
        return text
    return re.sub(re.escape(brand), lambda _: brand, text, flags=re.IGNORECASE)
