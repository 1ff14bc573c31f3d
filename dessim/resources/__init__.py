"""Shared resource primitives: Resource, Container and Store."""

from dessim.resources.base import BaseResource, BaseStats, Get, Put, ResourceEvent
from dessim.resources.container import Container, ContainerGet, ContainerPut, ContainerStats
from dessim.resources.resource import (
    PreemptiveResource,
    PriorityResource,
    Request,
    Resource,
    ResourceStats,
)
from dessim.resources.store import Store, StoreGet, StorePut, StoreStats

__all__ = [
    "BaseResource",
    "BaseStats",
    "ResourceEvent",
    "Put",
    "Get",
    "Resource",
    "PriorityResource",
    "PreemptiveResource",
    "Request",
    "ResourceStats",
    "Container",
    "ContainerPut",
    "ContainerGet",
    "ContainerStats",
    "Store",
    "StorePut",
    "StoreGet",
    "StoreStats",
]
