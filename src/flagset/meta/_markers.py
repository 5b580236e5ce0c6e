#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import enum
import sys

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Final

    if sys.version_info >= (3, 11):
        from typing import Literal
    else:  # typing-extensions>=4.6.0
        from typing_extensions import Literal

if sys.version_info >= (3, 11):  # `EnumMeta` has been renamed to `EnumType`
    from enum import EnumType
else:
    from enum import EnumMeta as EnumType

if sys.version_info >= (3, 11):  # runtime introspection support
    from typing import final
else:  # typing-extensions>=4.1.0
    from typing_extensions import final

# Markers are enum members so that type checkers can narrow a parameter whose
# default is the marker (see "Support for singleton types in unions" in
# PEP 484).


class _MarkerMeta(EnumType):
    # to allow `type(MARKER)() is MARKER`
    def __call__(cls, /, *args, **kwargs):
        if len(cls) != 1 or args or kwargs:
            return super().__call__(*args, **kwargs)

        return super().__call__(next(iter(cls)).value)


class _Marker(enum.Enum, metaclass=_MarkerMeta):
    def __init_subclass__(cls, /, **kwargs: object) -> None:
        bcs = cls.__bases__[0]

        # Enum classes with members cannot be subclassed in any case, but we
        # make this behavior explicit for clarity.
        if bcs is not _Marker:
            bcs_repr = f"{bcs.__module__}.{bcs.__qualname__}"

            msg = f"type '{bcs_repr}' is not an acceptable base type"
            raise TypeError(msg)

        super().__init_subclass__(**kwargs)

    def __setattr__(self, /, name: str, value: object) -> None:
        if name.startswith("_") and name.endswith("_"):  # used by `enum.Enum`
            super().__setattr__(name, value)
            return

        msg = f"{self.__class__.__qualname__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def __reduce_ex__(self, protocol: object, /) -> str:
        # pickle by the global name regardless of the member's value
        return self._name_

    def __repr__(self, /) -> str:
        return f"{self.__class__.__module__}.{self._name_}"

    def __str__(self, /) -> str:  # overridden by `enum.Enum`
        return f"{self.__class__.__module__}.{self._name_}"

    def __bool__(self, /) -> Literal[False]:
        return False


@final
class DefaultType(_Marker):
    """
    A singleton class for :data:`DEFAULT`; mimics :data:`~types.NoneType`.

    Used for parameters whose default depends on the context, such as the
    representation width of a flag set type that may be inherited from its
    base.
    """

    DEFAULT = object()


@final
class MissingType(_Marker):
    """
    A singleton class for :data:`MISSING`; mimics :data:`~types.NoneType`.

    Used for parameters that may be omitted entirely.
    """

    MISSING = object()


DEFAULT: Final[Literal[DefaultType.DEFAULT]] = DefaultType.DEFAULT
MISSING: Final[Literal[MissingType.MISSING]] = MissingType.MISSING
