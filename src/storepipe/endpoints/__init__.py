r"""Endpoint contracts, shapes and the endpoint registry."""

from __future__ import annotations

__all__ = [
    "TAG_KEY",
    "EndpointContract",
    "EndpointRegistry",
    "EndpointStyle",
    "ErrorShape",
    "HttpMethod",
    "ResultShape",
    "TaggedResultShape",
    "raw_result",
    "void_result",
]

from storepipe.endpoints.contract import EndpointContract, EndpointStyle, HttpMethod
from storepipe.endpoints.registry import EndpointRegistry
from storepipe.endpoints.shapes import (
    TAG_KEY,
    ErrorShape,
    ResultShape,
    TaggedResultShape,
    raw_result,
    void_result,
)
