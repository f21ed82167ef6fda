# nomadigma/utils/slug.py
import re
import unicodedata


def generate_slug(title: str) -> str:
    """Build a URL-safe slug from a title"""
    if not title:
        return ""

    text = unicodedata.normalize("NFD", title.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")
