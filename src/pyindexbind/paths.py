"""
pyindexbind Path Grammar
Builders and matchers for dotted/bracketed model paths

    property access:  Parent.Name        (no leading "." when parent is empty)
    indexed access:   Parent[token]
    index discovery:  Parent.index
"""

from __future__ import annotations


INDEX_KEY_NAME = "index"


def create_property_path(prefix: str, name: str) -> str:
    """Append a property segment to a path"""
    if not prefix:
        return name or ""
    if not name:
        return prefix
    return f"{prefix}.{name}"


def create_index_path(prefix: str, index: str | int) -> str:
    """Append an index segment to a path"""
    return f"{prefix}[{index}]"


def create_index_key(prefix: str) -> str:
    """Key holding the explicit index tokens of a collection"""
    return create_property_path(prefix, INDEX_KEY_NAME)


def is_prefix_match(prefix: str, key: str) -> bool:
    """
    Check whether ``key`` lies at or below ``prefix``.

    ``Addresses`` matches ``Addresses``, ``Addresses.index`` and
    ``Addresses[0].Street`` but not ``AddressesOld``. An empty prefix matches
    every key. Comparison ignores case.
    """
    if not prefix:
        return True
    if len(key) < len(prefix):
        return False
    if key[:len(prefix)].casefold() != prefix.casefold():
        return False
    if len(key) == len(prefix):
        return True
    return key[len(prefix)] in ".["
