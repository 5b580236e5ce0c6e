#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

"""
This package implements the metaprogramming helpers that the library uses for
its own needs: singleton markers for omitted arguments and the machinery that
gives public objects their public names. You can also use them for your own
flag set modules.
"""

from ._exports import (
    export as export,
    export_dynamic as export_dynamic,
)
from ._markers import (
    DEFAULT as DEFAULT,
    MISSING as MISSING,
    DefaultType as DefaultType,
    MissingType as MissingType,
)
