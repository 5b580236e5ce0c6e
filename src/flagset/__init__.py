#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
Typesafe bitmask flag sets for Python

This package generates value types for sets of C-style bitmask flags, such as
hardware register fields, protocol flag fields and OS API flags:

* declare the flags once, over an 8-, 16-, 32-, 64- or 128-bit signed or
  unsigned representation
* combine values with set algebra (``|``, ``&``, ``-``, ``^``, ``~``)
* query them (``contains()``, ``intersects()``, ``is_empty()``, ``is_all()``)
* convert from raw integers strictly, by truncation, or unchecked
* compare, order, hash, format and pickle them by their bits

Values of different flag set types are never mixed up.
"""

from __future__ import annotations

__author__: str = "Ilya Egorov <0x42005e1f@gmail.com>"
__version__: str  # dynamic
__version_tuple__: tuple[int | str, ...]  # dynamic

from . import meta  # noqa: F401
from ._flags import (
    Flags as Flags,
    FlagsType as FlagsType,
    UnrecognizedBitsError as UnrecognizedBitsError,
    ZeroFlagWarning as ZeroFlagWarning,
    flags as flags,
)
from ._representations import (
    I8 as I8,
    I16 as I16,
    I32 as I32,
    I64 as I64,
    I128 as I128,
    U8 as U8,
    U16 as U16,
    U32 as U32,
    U64 as U64,
    U128 as U128,
    Representation as Representation,
    representation as representation,
)

# prepare for external use
meta.export(globals())
meta.export_dynamic(globals(), "__version__", "._version.version")
meta.export_dynamic(globals(), "__version_tuple__", "._version.version_tuple")
