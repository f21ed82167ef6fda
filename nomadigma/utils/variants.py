# nomadigma/utils/variants.py
import logging
from typing import Any, List, Mapping, Optional, Sequence
from pydantic import ValidationError as PydanticValidationError
from ..models.bilingual import Language
from ..models.cart import CartLineItem, DownloadLink
from ..models.product import (
    DigitalFileDescriptor, FileType, ProductType, VariantItem, VariantOption
)
from .messages import Messages

logger = logging.getLogger(__name__)

def match_files(selected_variants: Mapping[str, str],
                descriptors: Sequence[DigitalFileDescriptor]) -> List[DigitalFileDescriptor]:
    """Descriptors that apply to the selected variant values, in list order"""
    selected_values = set(selected_variants.values())
    return [
        descriptor for descriptor in descriptors
        if not descriptor.values
        or any(value in selected_values for value in descriptor.values)
    ]

def normalize_variant_files(raw: Any) -> List[DigitalFileDescriptor]:
    """Accept the list form or the legacy `{value: url}` mapping"""
    if not raw:
        return []

    if isinstance(raw, dict):
        raw = [
            {"values": [value], "type": FileType.URL.value, "url": url}
            for value, url in raw.items()
        ]

    descriptors = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("url"):
            continue
        try:
            descriptors.append(DigitalFileDescriptor(
                values=entry.get("values") or [],
                type=entry.get("type") or FileType.URL,
                url=entry["url"],
            ))
        except PydanticValidationError as e:
            logger.warning(f"Skipping invalid variant file {entry!r}: {e}")
    return descriptors

def filter_variants(raw: Any) -> Optional[List[VariantItem]]:
    """Keep variants with a language, a label and at least one value"""
    if not isinstance(raw, list):
        return None

    variants = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if not isinstance(item.get("language"), str) or not isinstance(item.get("label"), str):
            continue
        values = item.get("values")
        if not isinstance(values, list) or not values:
            continue
        try:
            variants.append(VariantItem(
                language=item["language"],
                label=item["label"],
                values=[str(v) for v in values],
            ))
        except PydanticValidationError:
            continue
    return variants or None

def variants_for_language(variants: Optional[Sequence[VariantItem]],
                          language: Language) -> List[VariantOption]:
    """Variant options to render for the current UI language"""
    return [
        VariantOption(label=item.label, values=list(item.values))
        for item in variants or []
        if item.language == language
    ]

def _absolute_url(url: str, base_url: str) -> str:
    if url.startswith("http"):
        return url
    if url.startswith("/"):
        return f"{base_url}{url}"
    return f"{base_url}/{url}"

def download_links(item: CartLineItem, base_url: str,
                   locale: Language = Language.EN) -> List[DownloadLink]:
    """Download links for a purchased line item"""
    if item.product_type != ProductType.DIGITAL or not item.variant_files:
        return []

    links = []
    for descriptor in match_files(item.selected_variants, item.variant_files):
        label = (", ".join(descriptor.values) if descriptor.values
                 else Messages.text("download", locale))
        links.append(DownloadLink(url=_absolute_url(descriptor.url, base_url), label=label))
    return links
