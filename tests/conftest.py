"""Shared models and helpers for pyindexbind tests."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from pyindexbind import (
    ErrorSink,
    IndexModelBinder,
    create_binding_context,
    create_index_model_binder,
    create_type_registry,
)


@dataclass
class City:
    name: Optional[str] = None
    latitude: float = 0.0
    longitude: float = 0.0


@dataclass
class Address:
    zip: int = 0
    street: Optional[str] = None
    city: Optional[City] = None


@dataclass
class Person:
    name: Optional[str] = None
    addresses: List[Address] = field(default_factory=list)


@dataclass
class TreeNode:
    label: Optional[str] = None
    children: List[TreeNode] = field(default_factory=list)


@pytest.fixture
def binder() -> IndexModelBinder:
    return create_index_model_binder()


@pytest.fixture
def registry():
    return create_type_registry()


def run(coro):
    """Drive a coroutine to completion"""
    return asyncio.run(coro)


def bind_with(factory, descriptor, store, name: str = "", sink: Optional[ErrorSink] = None):
    """Resolve a binder and run it on a fresh top-level context"""
    sink = sink if sink is not None else ErrorSink()
    model_binder = factory.create_binder(descriptor, cache_token=descriptor)
    context = create_binding_context(store, sink, descriptor, None, name)
    return run(model_binder.bind_model(context)), sink, context
