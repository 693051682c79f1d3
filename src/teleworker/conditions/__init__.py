"""Gating conditions: internal providers, generic URL flags, and the resolver."""

from teleworker.conditions.base import NOT_MET, ConditionResult, Provider
from teleworker.conditions.registry import PROVIDERS, lookup
from teleworker.conditions.resolver import resolve

__all__ = [
    "NOT_MET",
    "PROVIDERS",
    "ConditionResult",
    "Provider",
    "lookup",
    "resolve",
]
