"""
Container Primitives

Generic containers used by every other module. Pure data structures,
no business rules.
"""

from xpense.containers.adapters import FifoQueue, LifoStack
from xpense.containers.heap import MinHeap
from xpense.containers.mapping import AssociationMap, UniqueSet
from xpense.containers.ordered import OrderedKeyMap
from xpense.containers.sequence import DynamicSequence

__all__ = [
    "AssociationMap",
    "DynamicSequence",
    "FifoQueue",
    "LifoStack",
    "MinHeap",
    "OrderedKeyMap",
    "UniqueSet",
]
