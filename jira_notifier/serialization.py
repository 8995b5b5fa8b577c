"""Canonical JSON encoding of request payloads and shape-driven decoding."""

from __future__ import annotations

import json
from typing import Any, Type, TypeVar

from pydantic import BaseModel, TypeAdapter

T = TypeVar("T")


class JsonSerializer:
    """Compact, order-preserving JSON serializer.

    The same instance is used for the plain body and for the claim embedded
    in a signed token, so both paths always see byte-identical JSON.
    Errors are left to propagate; the client classifies them.
    """

    separators = (",", ":")

    def dumps(self, payload: Any) -> str:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json", by_alias=True)
        return json.dumps(
            payload,
            separators=self.separators,
            ensure_ascii=False,
            allow_nan=False,
        )

    def adapter(self, shape: Type[T]) -> TypeAdapter[T]:
        return TypeAdapter(shape)

    def loads(self, body: bytes, shape: Type[T]) -> T:
        """Validate *body* as JSON into *shape* (model class, dict, list, ...)."""
        return self.adapter(shape).validate_json(body)
