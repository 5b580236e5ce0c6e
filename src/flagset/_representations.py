#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import sys

from operator import index
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

if sys.version_info >= (3, 11):
    from typing import final
else:
    from typing_extensions import final

_WIDTHS: Final[tuple[int, ...]] = (8, 16, 32, 64, 128)


@final
class Representation:
    """
    An immutable description of the integer that stores the bits of a flag
    set: its width in bits and its signedness.

    Signed representations use two's complement, so the sign bit is an
    ordinary bit that can be declared as a flag.

    Example:
      >>> U8
      flagset.Representation(8, signed=False)
      >>> str(I16), I16.min, I16.max
      ('i16', -32768, 32767)
    """

    __slots__ = (
        "_max",
        "_min",
        "_signed",
        "_width",
    )

    def __new__(cls, /, width: int, signed: bool = False) -> Self:
        """..."""

        width = index(width)

        if width not in _WIDTHS:
            msg = f"width must be one of {_WIDTHS}, got {width!r}"
            raise ValueError(msg)

        self = object.__new__(cls)

        self._width = width
        self._signed = signed = bool(signed)

        if signed:
            self._min = -(1 << (width - 1))
            self._max = (1 << (width - 1)) - 1
        else:
            self._min = 0
            self._max = (1 << width) - 1

        return self

    def __init_subclass__(cls, /, **kwargs: Any) -> None:
        bcs = cls.__bases__[0]
        bcs_repr = f"{bcs.__module__}.{bcs.__qualname__}"

        msg = f"type '{bcs_repr}' is not an acceptable base type"
        raise TypeError(msg)

    def __reduce__(self, /) -> tuple[Any, ...]:
        """
        Pickles the value as a lookup of the predefined representation, so
        that ``pickle.loads(pickle.dumps(U8)) is U8``.
        """

        return (representation, (self._width, self._signed))

    def __copy__(self, /) -> Self:
        """..."""

        return self

    def __deepcopy__(self, /, memo: dict[int, Any]) -> Self:
        """..."""

        return self

    def __repr__(self, /) -> str:
        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        return f"{cls_repr}({self._width}, signed={self._signed})"

    def __str__(self, /) -> str:
        return f"{'i' if self._signed else 'u'}{self._width}"

    def __eq__(self, other: object, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._width == other._width and self._signed == other._signed

    def __ne__(self, other: object, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._width != other._width or self._signed != other._signed

    def __hash__(self, /) -> int:
        return hash((self._width, self._signed))

    def check(self, value: int, /) -> int:
        """
        Return *value* as a plain :class:`int` if it is a value of this
        representation.

        Raises:
          TypeError:
            if *value* is not an integer (see :func:`operator.index`).
          OverflowError:
            if *value* is out of range.

        Example:
          >>> U8.check(255)
          255
          >>> U8.check(256)
          Traceback (most recent call last):
          OverflowError: 256 is out of range for u8
        """

        value = int(index(value))

        if not self._min <= value <= self._max:
            msg = f"{value} is out of range for {self}"
            raise OverflowError(msg)

        return value

    def hex(self, value: int, /) -> str:
        """
        Format *value* as the hexadecimal bit pattern it occupies in the
        representation (two's complement for negative values).

        Example:
          >>> I8.hex(-128)
          '0x80'
        """

        return f"{value & self.mask:#x}"

    @property
    def width(self, /) -> int:
        """
        The number of bits.
        """

        return self._width

    @property
    def signed(self, /) -> bool:
        """..."""

        return self._signed

    @property
    def min(self, /) -> int:
        """..."""

        return self._min

    @property
    def max(self, /) -> int:
        """..."""

        return self._max

    @property
    def mask(self, /) -> int:
        """
        The non-negative integer with all :attr:`width` bits set.
        """

        return (1 << self._width) - 1


U8: Final[Representation] = Representation(8)
U16: Final[Representation] = Representation(16)
U32: Final[Representation] = Representation(32)
U64: Final[Representation] = Representation(64)
U128: Final[Representation] = Representation(128)
I8: Final[Representation] = Representation(8, signed=True)
I16: Final[Representation] = Representation(16, signed=True)
I32: Final[Representation] = Representation(32, signed=True)
I64: Final[Representation] = Representation(64, signed=True)
I128: Final[Representation] = Representation(128, signed=True)

_REPRESENTATIONS: Final[dict[tuple[int, bool], Representation]] = {
    (r.width, r.signed): r
    for r in (U8, U16, U32, U64, U128, I8, I16, I32, I64, I128)
}


def representation(width: int, signed: bool = False) -> Representation:
    """
    Return the predefined representation for *width* and *signed*.

    Raises:
      ValueError:
        if *width* is not one of 8, 16, 32, 64 and 128.

    Example:
      >>> representation(32) is U32
      True
      >>> representation(8, signed=True) is I8
      True
    """

    try:
        return _REPRESENTATIONS[index(width), bool(signed)]
    except KeyError:
        msg = f"width must be one of {_WIDTHS}, got {width!r}"
        raise ValueError(msg) from None
