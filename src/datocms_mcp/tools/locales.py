"""
Trimming of localized record payloads.

Localized fields come back as {"en": ..., "it": ...} bundles. To keep tool
output small, records are reduced to the locale carrying the most non-empty
values unless the caller asks for every locale.
"""

import re
from collections import Counter
from typing import Any, List, Optional

LOCALE_PATTERN = re.compile(r"^[a-z]{2}(?:-[a-zA-Z]{2,3})?$")


def _is_localized(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(
        isinstance(key, str) and LOCALE_PATTERN.match(key) for key in value
    )


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (bool, int, float)):
        return False
    if isinstance(value, list):
        return all(_is_empty(item) for item in value)
    if isinstance(value, dict):
        return all(_is_empty(item) for item in value.values())
    return True


def _count(node: Any, counts: Counter) -> Counter:
    if isinstance(node, list):
        for child in node:
            _count(child, counts)
    elif isinstance(node, dict):
        localized = _is_localized(node)
        for key, value in node.items():
            if localized and not _is_empty(value):
                counts[key] += 1
            _count(value, counts)
    return counts


def dominant_locale(data: Any) -> Optional[str]:
    """Locale with the most non-empty values; ties go to the first seen."""
    counts = _count(data, Counter())
    if not counts:
        return None
    return max(counts, key=counts.__getitem__)


def _strip(node: Any, locale: str) -> Any:
    if isinstance(node, list):
        return [_strip(child, locale) for child in node]
    if isinstance(node, dict):
        if _is_localized(node):
            return _strip(node.get(locale), locale)
        return {key: _strip(value, locale) for key, value in node.items()}
    return node


def most_populated_locale(data: Any, keep_all_locales: bool = False) -> Any:
    """
    Return a copy of data keeping only the dominant locale of each bundle.

    Args:
        data: Record, list of records or any JSON-like value
        keep_all_locales: Return data unchanged
    """
    if keep_all_locales:
        return data
    locale = dominant_locale(data)
    if locale is None:
        return data
    return _strip(data, locale)


def only_ids(records: Any) -> List[str]:
    return [record["id"] for record in records]
