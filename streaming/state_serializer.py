"""Compact JSON encoding of RenderState frames for an external renderer."""

from __future__ import annotations

import dataclasses
import json
from typing import Any


MAX_FRAME_BYTES = 10 * 1024 * 1024
DEFAULT_PRECISION = 3


def _to_jsonable(value: Any, precision: int | None) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_jsonable(getattr(value, f.name), precision) for f in dataclasses.fields(value)}
    if hasattr(value, "tolist"):
        return _to_jsonable(value.tolist(), precision)
    if isinstance(value, dict):
        return {str(k): _to_jsonable(v, precision) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v, precision) for v in value]
    if isinstance(value, float) and precision is not None:
        return round(value, precision)
    return value


def serialize_state(
    render_state: Any,
    include_population: bool = True,
    precision: int | None = DEFAULT_PRECISION,
) -> bytes:
    """Serialize a render frame into deterministic compact JSON bytes.

    Floats are rounded to ``precision`` decimals (``None`` keeps them exact).
    ``include_population=False`` drops the per-car list, which dominates the
    frame size for large populations.
    """
    payload = _to_jsonable(render_state, precision)
    if not include_population and isinstance(payload, dict):
        payload["cars"] = []
    data = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    if len(data) > MAX_FRAME_BYTES:
        raise ValueError(
            f"Serialized frame exceeds max size ({len(data)} bytes > {MAX_FRAME_BYTES})."
        )
    return data
