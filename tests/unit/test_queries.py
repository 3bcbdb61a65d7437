"""Tests for typed queries and their result types."""

import base64

import numpy as np
import pytest

from harness.queries import (
    AttributeQuery,
    BoundingBox,
    CountQuery,
    InputValueQuery,
    PixelBuffer,
    PixelQuery,
    Region,
    TextQuery,
    describe_query,
)
from tests.pytest_marks import unit


def _buffer(width: int, height: int, painted: int = 0) -> PixelBuffer:
    data = bytearray(width * height * 4)
    for i in range(painted):
        data[i * 4 : i * 4 + 4] = bytes([255, 0, 0, 255])
    return PixelBuffer(width, height, bytes(data))


@unit
class TestRegion:
    def test_rejects_empty_region(self) -> None:
        with pytest.raises(ValueError):
            Region(0, 0, 0, 10)

    def test_rejects_negative_origin(self) -> None:
        with pytest.raises(ValueError):
            Region(-1, 0, 5, 5)


@unit
class TestPixelBuffer:
    def test_rejects_wrong_length(self) -> None:
        with pytest.raises(ValueError, match="expected 16"):
            PixelBuffer(2, 2, b"\x00" * 15)

    def test_array_shape(self) -> None:
        buffer = _buffer(3, 2)
        array = buffer.as_array()
        assert array.shape == (2, 3, 4)
        assert array.dtype == np.uint8

    def test_pixel_lookup(self) -> None:
        buffer = _buffer(2, 2, painted=1)
        assert buffer.pixel(0, 0) == (255, 0, 0, 255)
        assert buffer.pixel(1, 1) == (0, 0, 0, 0)

    def test_pixel_out_of_bounds(self) -> None:
        with pytest.raises(IndexError):
            _buffer(2, 2).pixel(2, 0)

    def test_blank_and_painted(self) -> None:
        assert _buffer(4, 4).is_blank()
        painted = _buffer(4, 4, painted=3)
        assert not painted.is_blank()
        assert painted.painted_count() == 3

    def test_from_base64(self) -> None:
        raw = bytes([1, 2, 3, 4] * 6)
        buffer = PixelBuffer.from_base64(3, 2, base64.b64encode(raw).decode(), tainted=True)
        assert buffer.data == raw
        assert buffer.tainted
        assert buffer.pixel(2, 1) == (1, 2, 3, 4)

    def test_empty_buffer(self) -> None:
        buffer = PixelBuffer(0, 0, b"")
        assert buffer.is_blank()
        assert buffer.painted_count() == 0


@unit
class TestBoundingBox:
    def test_center(self) -> None:
        assert BoundingBox(10, 20, 100, 50).center == (60, 45)


@unit
class TestDescribeQuery:
    def test_descriptions(self) -> None:
        assert describe_query(CountQuery(".bar")) == "count(.bar)"
        assert describe_query(TextQuery("#out")) == "text(#out)"
        assert describe_query(TextQuery("#out", inner=True)) == "innerText(#out)"
        assert describe_query(InputValueQuery("#name")) == "value(#name)"
        assert describe_query(AttributeQuery("#a", "href")) == "attribute(#a, href)"
        assert describe_query(PixelQuery("#board")) == "pixels(#board)"

    def test_queries_are_hashable_values(self) -> None:
        assert CountQuery(".bar") == CountQuery(".bar")
        assert len({TextQuery("#a"), TextQuery("#a"), TextQuery("#b")}) == 2
