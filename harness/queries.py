"""
Typed State Reader queries and their results.

Each query type is parameterized by exactly one result type, so callers never
handle an untyped "whatever the DOM returned" value.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Generic, Optional, Tuple, TypeVar, Union

import numpy as np
import numpy.typing as npt

R = TypeVar("R")


@dataclass(frozen=True)
class Region:
    """Rectangle in canvas pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("Region width and height must be positive")
        if self.x < 0 or self.y < 0:
            raise ValueError("Region origin must not be negative")


# Results


@dataclass(frozen=True)
class ElementCount:
    value: int


@dataclass(frozen=True)
class TextValue:
    """Text of the node; None when no node matched."""

    value: Optional[str]


@dataclass(frozen=True)
class AttributeValue:
    """Attribute value; None when the node or the attribute is missing."""

    name: str
    value: Optional[str]
    element_present: bool


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


@dataclass(frozen=True)
class BoxValue:
    """Bounding box; None when no node matched or it is not rendered."""

    value: Optional[BoundingBox]


@dataclass(frozen=True)
class FlagValue:
    """Boolean node state; None when no node matched."""

    value: Optional[bool]


@dataclass(frozen=True)
class PixelBuffer:
    """
    RGBA pixel snapshot of a present element.

    A blank canvas and a cross-origin tainted canvas both produce zeroed data;
    ``tainted`` tells them apart. An absent element never produces a buffer.
    """

    width: int
    height: int
    data: bytes
    tainted: bool = False

    def __post_init__(self) -> None:
        expected = self.width * self.height * 4
        if len(self.data) != expected:
            raise ValueError(
                f"Pixel data has {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height} RGBA"
            )

    @classmethod
    def from_base64(
        cls, width: int, height: int, encoded: str, tainted: bool = False
    ) -> PixelBuffer:
        return cls(width, height, base64.b64decode(encoded), tainted)

    def as_array(self) -> npt.NDArray[np.uint8]:
        """Pixel data as a (height, width, 4) uint8 array."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(
            (self.height, self.width, 4)
        )

    def pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        """RGBA tuple at (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height}")
        r, g, b, a = self.as_array()[y, x]
        return int(r), int(g), int(b), int(a)

    def is_blank(self) -> bool:
        """True when every channel of every pixel is zero."""
        return not self.as_array().any()

    def painted_count(self) -> int:
        """Number of pixels with non-zero alpha."""
        return int(np.count_nonzero(self.as_array()[:, :, 3]))


QueryResult = Union[
    ElementCount, TextValue, AttributeValue, BoxValue, FlagValue, Optional[PixelBuffer]
]


# Queries


class QueryBase(Generic[R]):
    """A DOM observation whose answer has type R."""

    selector: str


@dataclass(frozen=True)
class CountQuery(QueryBase[ElementCount]):
    """Number of nodes matching a selector."""

    selector: str


@dataclass(frozen=True)
class TextQuery(QueryBase[TextValue]):
    """textContent (or innerText when inner=True) of a single node."""

    selector: str
    inner: bool = False


@dataclass(frozen=True)
class InputValueQuery(QueryBase[TextValue]):
    """Current value of an input, textarea or select."""

    selector: str


@dataclass(frozen=True)
class AttributeQuery(QueryBase[AttributeValue]):
    selector: str
    name: str


@dataclass(frozen=True)
class BoundingBoxQuery(QueryBase[BoxValue]):
    """Viewport-relative bounding box of a single node."""

    selector: str


@dataclass(frozen=True)
class IsVisibleQuery(QueryBase[FlagValue]):
    """Whether a single node is rendered with a non-empty box."""

    selector: str


@dataclass(frozen=True)
class IsCheckedQuery(QueryBase[FlagValue]):
    selector: str


@dataclass(frozen=True)
class PixelQuery(QueryBase[Optional[PixelBuffer]]):
    """RGBA pixel data of a canvas or image, optionally a sub-region."""

    selector: str
    region: Optional[Region] = None


Query = Union[
    CountQuery,
    TextQuery,
    InputValueQuery,
    AttributeQuery,
    BoundingBoxQuery,
    IsVisibleQuery,
    IsCheckedQuery,
    PixelQuery,
]


def describe_query(query: QueryBase[R]) -> str:
    """Short human-readable form used in timeout diagnostics."""
    match query:
        case CountQuery(selector=selector):
            return f"count({selector})"
        case TextQuery(selector=selector, inner=inner):
            return f"{'innerText' if inner else 'text'}({selector})"
        case InputValueQuery(selector=selector):
            return f"value({selector})"
        case AttributeQuery(selector=selector, name=name):
            return f"attribute({selector}, {name})"
        case BoundingBoxQuery(selector=selector):
            return f"box({selector})"
        case IsVisibleQuery(selector=selector):
            return f"visible({selector})"
        case IsCheckedQuery(selector=selector):
            return f"checked({selector})"
        case PixelQuery(selector=selector, region=region):
            return f"pixels({selector}{', ' + str(region) if region else ''})"
        case _:
            return repr(query)
