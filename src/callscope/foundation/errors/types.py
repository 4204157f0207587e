"""Type aliases shared across callscope.

Attribute and export payloads are plain JSON-compatible structures so exporters
can serialize them without knowing about span internals.
"""

from __future__ import annotations

from typing import Any, Union

JsonDict = dict[str, Any]

# Primitive types accepted as span attribute values
AttributePrimitive = Union[str, bool, int, float]
