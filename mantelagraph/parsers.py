"""
Mantela Graph — Descriptor Parser

Decoded JSON → Descriptor dataclasses.

Only the fields the crawl consumes are checked:
  aboutMe     { identifier, name }
  extensions  [ { name, type, extension } ]
  providers   [ { identifier, name, prefix, mantela? } ]

Everything else in a mantela.json (geolocation, sip credentials hints,
images, whatever the operator added) is ignored. A document whose
consumed fields have the wrong shape raises DescriptorShapeError; the
fetcher turns that into a shape-error result.
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from .models import AboutMe, Descriptor, ExtensionEntry, ProviderEntry

logger = logging.getLogger("mantelagraph.parsers")


class DescriptorShapeError(ValueError):
    """Consumed field missing or of the wrong type."""


# ============================================================
# Utility — field extraction helpers
# ============================================================

def _field_str(entry: dict, key: str, where: str) -> str:
    """
    Required text field. Whole numbers are accepted and stringified — plenty
    of hand-written mantelas say "extension": 100 instead of "100".
    100.0 reads as "100"; 1.5, inf and nan are shape errors.
    """
    value = entry.get(key)
    if isinstance(value, bool) or value is None:
        raise DescriptorShapeError(f"{where}: '{key}' missing or not a string")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not value.is_integer():
            raise DescriptorShapeError(
                f"{where}: '{key}' must be a whole number, got {value!r}"
            )
        return str(int(value))
    if not isinstance(value, str):
        raise DescriptorShapeError(
            f"{where}: '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _optional_str(entry: dict, key: str, where: str) -> Optional[str]:
    """Optional text field. Absent, null and "" all mean "not given"."""
    value = entry.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DescriptorShapeError(
            f"{where}: '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _object_list(doc: dict, key: str) -> list[dict]:
    if key not in doc or doc[key] is None:
        return []
    items = doc[key]
    if not isinstance(items, list):
        raise DescriptorShapeError(
            f"'{key}' must be an array, got {type(items).__name__}"
        )
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise DescriptorShapeError(
                f"{key}[{i}] must be an object, got {type(item).__name__}"
            )
    return items


# ============================================================
# Section parsers
# ============================================================

def parse_about_me(doc: dict) -> Optional[AboutMe]:
    if "aboutMe" not in doc or doc["aboutMe"] is None:
        return None
    section = doc["aboutMe"]
    if not isinstance(section, dict):
        raise DescriptorShapeError(
            f"'aboutMe' must be an object, got {type(section).__name__}"
        )
    return AboutMe(
        identifier=_field_str(section, "identifier", "aboutMe"),
        name=_field_str(section, "name", "aboutMe"),
    )


def parse_extensions(doc: dict) -> list[ExtensionEntry]:
    return [
        ExtensionEntry(
            name=_field_str(e, "name", f"extensions[{i}]"),
            type=_field_str(e, "type", f"extensions[{i}]"),
            extension=_field_str(e, "extension", f"extensions[{i}]"),
        )
        for i, e in enumerate(_object_list(doc, "extensions"))
    ]


def parse_providers(doc: dict) -> list[ProviderEntry]:
    return [
        ProviderEntry(
            identifier=_field_str(p, "identifier", f"providers[{i}]"),
            name=_field_str(p, "name", f"providers[{i}]"),
            prefix=_field_str(p, "prefix", f"providers[{i}]"),
            mantela=_optional_str(p, "mantela", f"providers[{i}]"),
        )
        for i, p in enumerate(_object_list(doc, "providers"))
    ]


def parse_descriptor(doc: Any) -> Descriptor:
    """Decoded JSON → Descriptor. Raises DescriptorShapeError."""
    if not isinstance(doc, dict):
        raise DescriptorShapeError(
            f"descriptor must be a JSON object, got {type(doc).__name__}"
        )
    descriptor = Descriptor(
        about_me=parse_about_me(doc),
        extensions=parse_extensions(doc),
        providers=parse_providers(doc),
    )
    logger.debug(
        f"Parsed descriptor: aboutMe={'yes' if descriptor.about_me else 'no'}, "
        f"{len(descriptor.extensions)} extensions, "
        f"{len(descriptor.providers)} providers"
    )
    return descriptor
