#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: ISC

from __future__ import annotations

import os
import sys
import warnings

from keyword import iskeyword
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any, ClassVar, Final

from ._representations import Representation, representation
from .meta import DEFAULT, MISSING, DefaultType, MissingType

if TYPE_CHECKING:
    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

if sys.version_info >= (3, 9):
    from collections.abc import Iterable, Iterator, Mapping
else:
    from typing import Iterable, Iterator, Mapping

_DEFAULT_WIDTH: Final[int] = int(os.getenv("FLAGSET_DEFAULT_WIDTH") or 32)

_ZERO_FLAG_WARNINGS_ENABLED: Final[bool] = bool(
    os.getenv(
        "FLAGSET_ZERO_FLAG_WARNINGS",
        "",
    )
)

LOGGER: Final[Logger] = getLogger(__name__)


class UnrecognizedBitsError(ValueError):
    """
    Raised by :meth:`Flags.from_bits` when the raw integer has bits that no
    declared flag covers.

    Attributes:
      bits:
        The raw integer that was passed.
      unrecognized:
        The subset of *bits* outside the all-flags mask.
    """

    def __init__(self, /, bits: int, unrecognized: int) -> None:
        super().__init__(bits, unrecognized)

        self.bits = bits
        self.unrecognized = unrecognized

    def __str__(self, /) -> str:
        return f"unrecognized bits {self.unrecognized:#x} in {self.bits:#x}"


class ZeroFlagWarning(UserWarning):
    """
    Emitted when a flag with the value ``0`` is declared and the
    ``FLAGSET_ZERO_FLAG_WARNINGS`` environment variable is set.
    """


class _FlagConstant:
    # Each access produces a new value, so that mutating it never alters the
    # declared constant.

    __slots__ = (
        "_bits",
        "_name",
    )

    def __init__(self, /, name: str, bits: int) -> None:
        self._name = name
        self._bits = bits

    def __get__(self, instance: object, owner: type | None = None) -> Flags:
        if owner is None:
            owner = type(instance)

        return owner._make(self._bits)

    def __repr__(self, /) -> str:
        return f"<flag {self._name}={self._bits:#x}>"


def _build_table(
    declarations: Iterable[tuple[str, Any]],
    reserved: Iterable[type],
    representation: Representation,
    /,
    stacklevel: int,
) -> list[tuple[str, int]]:
    table = []
    names = set()

    for name, bits in declarations:
        if name in names:
            msg = f"flag {name!r} is declared more than once"
            raise ValueError(msg)

        if any(hasattr(base, name) for base in reserved):
            msg = f"flag name {name!r} is reserved"
            raise ValueError(msg)

        if isinstance(bits, bool) or not isinstance(bits, int):
            msg = (
                f"value of flag {name!r} must be an integer,"
                f" not {bits.__class__.__qualname__}"
            )
            raise TypeError(msg)

        try:
            bits = representation.check(bits)
        except OverflowError:
            msg = f"value of flag {name!r} is out of range for {representation}"
            raise OverflowError(msg) from None

        if not bits and _ZERO_FLAG_WARNINGS_ENABLED:
            warnings.warn(
                f"flag {name!r} has the value 0 and is contained in every value",
                ZeroFlagWarning,
                stacklevel=stacklevel + 1,
            )

        names.add(name)
        table.append((name, bits))

    return table


class FlagsType(type):
    """
    The metaclass of flag set types.

    It turns every public integer attribute of the class body into a declared
    flag (in declaration order), validates the declarations once and computes
    the all-flags mask. The resulting class is iterable over its declared
    constants.

    Class keywords:
      width:
        The representation width in bits (8, 16, 32, 64 or 128). Inherited
        from the base, otherwise ``FLAGSET_DEFAULT_WIDTH`` (32).
      signed:
        Whether the representation is signed. Inherited from the base,
        otherwise :data:`False`.
    """

    def __new__(
        mcls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        /,
        *,
        width: int | DefaultType = DEFAULT,
        signed: bool | DefaultType = DEFAULT,
        _stacklevel: int = 1,
        **kwargs: Any,
    ) -> FlagsType:
        flag_bases = [base for base in bases if isinstance(base, FlagsType)]

        if not flag_bases:  # the root class
            return super().__new__(mcls, name, bases, namespace, **kwargs)

        base_representation = None

        for base in flag_bases:
            if base._flags_:
                msg = (
                    f"cannot extend {base.__qualname__!r}"
                    " because it already declares flags"
                )
                raise TypeError(msg)

            if base_representation is None:
                base_representation = base._representation_

        if width is DEFAULT:
            if base_representation is not None:
                width = base_representation.width
            else:
                width = _DEFAULT_WIDTH

        if signed is DEFAULT:
            if base_representation is not None:
                signed = base_representation.signed
            else:
                signed = False

        flags_representation = representation(width, signed)

        # `_stacklevel` counts from the caller of the metaclass (the class
        # statement by default), `stacklevel` counts from `__new__()`
        table = _build_table(
            [
                (attr_name, value)
                for attr_name, value in namespace.items()
                if not attr_name.startswith("_") and isinstance(value, int)
            ],
            bases,
            flags_representation,
            stacklevel=_stacklevel + 1,
        )

        all_bits = 0

        for _, bits in table:
            all_bits |= bits

        namespace = {**namespace}
        namespace.setdefault("__slots__", ())

        for flag_name, bits in table:
            namespace[flag_name] = _FlagConstant(flag_name, bits)

        namespace["_flags_"] = tuple(table)
        namespace["_all_"] = all_bits
        namespace["_representation_"] = flags_representation

        cls = super().__new__(mcls, name, bases, namespace, **kwargs)

        LOGGER.debug(
            "defined flag set type %s.%s over %s with %d flags",
            cls.__module__,
            cls.__qualname__,
            flags_representation,
            len(table),
        )

        return cls

    def __init__(
        cls,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
        /,
        **kwargs: Any,
    ) -> None:
        super().__init__(name, bases, namespace)

    def __setattr__(cls, name: str, value: object, /) -> None:
        if isinstance(cls.__dict__.get(name), _FlagConstant):
            msg = f"cannot reassign flag {name!r}"
            raise AttributeError(msg)

        super().__setattr__(name, value)

    def __delattr__(cls, name: str, /) -> None:
        if isinstance(cls.__dict__.get(name), _FlagConstant):
            msg = f"cannot delete flag {name!r}"
            raise AttributeError(msg)

        super().__delattr__(name)

    def __iter__(cls) -> Iterator[Any]:
        """
        Iterate over the declared constants in declaration order.
        """

        for _, bits in cls._flags_:
            yield cls._make(bits)

    def __len__(cls) -> int:
        """
        Returns the number of declared flags.
        """

        return len(cls._flags_)

    def __contains__(cls, name: object, /) -> bool:
        """
        Returns :data:`True` if a flag named *name* is declared.
        """

        return any(name == flag_name for flag_name, _ in cls._flags_)

    @property
    def representation(cls) -> Representation | None:
        """
        The representation of the underlying integer (:data:`None` for the
        root :class:`Flags` class).
        """

        return cls._representation_


def _check_same_type(value: Flags, other: object, /) -> None:
    cls = value.__class__

    if other.__class__ is not cls:
        msg = (
            f"expected {cls.__qualname__},"
            f" got {other.__class__.__qualname__}"
        )
        raise TypeError(msg)


class Flags(metaclass=FlagsType):
    """
    The base class for typesafe bitmask flag sets.

    Subclassing declares a new flag set type. Every public integer attribute
    of the class body becomes a flag; composite flags may reference earlier
    ones:

      >>> class Permissions(Flags, width=8):
      ...     READ = 0b001
      ...     WRITE = 0b010
      ...     EXECUTE = 0b100
      ...     ALL = READ | WRITE | EXECUTE
      >>> rw = Permissions.READ | Permissions.WRITE
      >>> str(rw)
      'READ | WRITE'
      >>> rw.contains(Permissions.WRITE)
      True
      >>> str(~rw)
      'EXECUTE'

    Values of different flag set types never compare equal and never combine.

    Augmented assignments (``|=``, ``&=``, ``-=``, ``^=``) rebind the name to
    a new value, as they do for :class:`int`, so other references to the old
    value are not affected. Only the mutating methods (:meth:`insert`,
    :meth:`remove`, :meth:`toggle`, :meth:`set` and :meth:`extend`) change
    the value itself.

    Methods defined in the class body extend the type as usual. A flag set
    type that declares flags cannot be subclassed further.

    Flags with the value ``0`` are contained in every value (including the
    empty one) and are ignored when testing for emptiness. Avoid declaring
    them unless this is what you want.
    """

    __slots__ = ("_bits",)

    _flags_: ClassVar[tuple[tuple[str, int], ...]] = ()
    _all_: ClassVar[int] = 0
    _representation_: ClassVar[Representation | None] = None

    def __new__(cls, bits: int | MissingType = MISSING, /) -> Self:
        """
        Returns :meth:`default` when called without arguments, and
        :meth:`from_bits` of *bits* otherwise.
        """

        if bits is MISSING:
            return cls.default()

        return cls.from_bits(bits)

    @classmethod
    def _make(cls, bits: int, /) -> Self:
        self = object.__new__(cls)

        self._bits = bits

        return self

    @classmethod
    def _check_raw(cls, bits: int, /) -> int:
        representation = cls._representation_

        if representation is None:
            msg = f"{cls.__qualname__} does not have a representation"
            raise TypeError(msg)

        if isinstance(bits, Flags):
            msg = (
                "expected an integer,"
                f" got {bits.__class__.__qualname__} (use its bits() method)"
            )
            raise TypeError(msg)

        return representation.check(bits)

    @classmethod
    def default(cls) -> Self:
        """
        Returns the value used when the type is called without arguments.

        Returns :meth:`empty`; override it to choose another default.
        """

        return cls._make(0)

    @classmethod
    def empty(cls) -> Self:
        """
        Returns an empty set of flags.
        """

        return cls._make(0)

    @classmethod
    def all(cls) -> Self:
        """
        Returns the set of all declared flags.
        """

        return cls._make(cls._all_)

    @classmethod
    def from_bits(cls, bits: int, /) -> Self:
        """
        Convert from the underlying bit representation, unless it contains
        bits that do not correspond to a declared flag.

        Raises:
          UnrecognizedBitsError:
            if *bits* is not covered by the all-flags mask.
          TypeError:
            if *bits* is not an integer.
          OverflowError:
            if *bits* is out of range for the representation.
        """

        bits = cls._check_raw(bits)

        unrecognized = bits & ~cls._all_

        if unrecognized:
            raise UnrecognizedBitsError(bits, unrecognized)

        return cls._make(bits)

    @classmethod
    def from_bits_truncate(cls, bits: int, /) -> Self:
        """
        Convert from the underlying bit representation, dropping any bits
        that do not correspond to declared flags.
        """

        return cls._make(cls._check_raw(bits) & cls._all_)

    @classmethod
    def from_bits_unchecked(cls, bits: int, /) -> Self:
        """
        Convert from the underlying bit representation, keeping all bits
        (even those not corresponding to declared flags).

        This is an escape hatch for foreign bit patterns: the result may
        violate the all-flags mask invariant. All operations stay correct on
        such values, and :meth:`complement` clips them back into the mask.
        """

        return cls._make(cls._check_raw(bits))

    @classmethod
    def from_iter(cls, values: Iterable[Self], /) -> Self:
        """
        Returns the union of *values* (empty if there are none).
        """

        bits = 0

        for value in values:
            if value.__class__ is not cls:
                msg = (
                    f"expected {cls.__qualname__},"
                    f" got {value.__class__.__qualname__}"
                )
                raise TypeError(msg)

            bits |= value._bits

        return cls._make(bits)

    def __reduce__(self, /) -> tuple[Any, ...]:
        """
        Pickles the value through :meth:`from_bits_unchecked`, so that values
        with unrecognized bits survive the round trip.
        """

        return (self.__class__.from_bits_unchecked, (self._bits,))

    def __copy__(self, /) -> Self:
        """..."""

        return self.__class__._make(self._bits)

    def __deepcopy__(self, /, memo: dict[int, Any]) -> Self:
        """..."""

        return self.__class__._make(self._bits)

    def copy(self, /) -> Self:
        """
        Returns an independent copy of the value.
        """

        return self.__copy__()

    def bits(self, /) -> int:
        """
        Returns the raw value of the flags currently stored.
        """

        return self._bits

    def __index__(self, /) -> int:
        """
        Returns the raw bits, so that :func:`bin`, :func:`hex`, :func:`int`,
        :mod:`struct` and :mod:`ctypes` accept the value directly.
        """

        return self._bits

    def __bool__(self, /) -> bool:
        """
        Returns :data:`True` if any bit is set.

        Used by the standard :ref:`truth testing procedure <truth>`.
        """

        return self._bits != 0

    def __repr__(self, /) -> str:
        cls = self.__class__
        cls_repr = f"{cls.__module__}.{cls.__qualname__}"

        return f"{cls_repr}({self})"

    def __str__(self, /) -> str:
        """
        Returns the names of all declared non-zero flags contained in the
        value, in declaration order, joined with ``" | "``, followed by the
        bits that no declared flag accounts for in hexadecimal if there are
        any. A value that renders nothing is rendered as ``(empty)``.

        Example:
          >>> class Mode(Flags, width=8):
          ...     A = 0b001
          ...     B = 0b010
          >>> str(Mode.A | Mode.B)
          'A | B'
          >>> str(Mode.from_bits_unchecked(0b1001))
          'A | 0x8'
          >>> str(Mode.empty())
          '(empty)'
        """

        cls = self.__class__
        bits = self._bits

        parts = [
            name
            for name, flag_bits in cls._flags_
            if flag_bits and bits & flag_bits == flag_bits
        ]

        # bits outside the all-flags mask
        residual = bits & ~cls._all_

        if residual:
            parts.append(cls._representation_.hex(residual))

        if not parts:
            return "(empty)"

        return " | ".join(parts)

    def __format__(self, format_spec: str, /) -> str:
        """
        Numeric presentation types (``b``, ``c``, ``d``, ``e``, ``E``, ``f``,
        ``F``, ``g``, ``G``, ``n``, ``o``, ``x``, ``X`` and ``%``) format the
        raw bits as :class:`int` does, anything else formats :meth:`__str__`.
        """

        if format_spec and format_spec[-1] in "bcdeEfFgGnoxX%":
            return format(self._bits, format_spec)

        return format(str(self), format_spec)

    def __eq__(self, other: object, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits == other._bits

    def __ne__(self, other: object, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits != other._bits

    def __lt__(self, other: Self, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits < other._bits

    def __le__(self, other: Self, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits <= other._bits

    def __gt__(self, other: Self, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits > other._bits

    def __ge__(self, other: Self, /) -> bool:
        if other.__class__ is not self.__class__:
            return NotImplemented

        return self._bits >= other._bits

    def __hash__(self, /) -> int:
        return hash(self._bits)

    def __contains__(self, other: Self, /) -> bool:
        """
        Returns :data:`True` if all of the flags in *other* are contained
        within the value (see :meth:`contains`).
        """

        _check_same_type(self, other)

        return self._bits & other._bits == other._bits

    def __or__(self, other: Self, /) -> Self:
        cls = self.__class__

        if other.__class__ is not cls:
            return NotImplemented

        return cls._make(self._bits | other._bits)

    def __and__(self, other: Self, /) -> Self:
        cls = self.__class__

        if other.__class__ is not cls:
            return NotImplemented

        return cls._make(self._bits & other._bits)

    def __sub__(self, other: Self, /) -> Self:
        cls = self.__class__

        if other.__class__ is not cls:
            return NotImplemented

        return cls._make(self._bits & ~other._bits)

    def __xor__(self, other: Self, /) -> Self:
        cls = self.__class__

        if other.__class__ is not cls:
            return NotImplemented

        return cls._make(self._bits ^ other._bits)

    def __invert__(self, /) -> Self:
        cls = self.__class__

        return cls._make(~self._bits & cls._all_)

    def is_empty(self, /) -> bool:
        """
        Returns :data:`True` if no flags are currently stored.
        """

        return self._bits == 0

    def is_all(self, /) -> bool:
        """
        Returns :data:`True` if the stored flags exactly equal all declared
        flags.
        """

        return self._bits == self.__class__._all_

    def contains(self, other: Self, /) -> bool:
        """
        Returns :data:`True` if all of the flags in *other* are contained
        within the value. Always :data:`True` for an empty *other*.
        """

        _check_same_type(self, other)

        return self._bits & other._bits == other._bits

    def intersects(self, other: Self, /) -> bool:
        """
        Returns :data:`True` if there are flags common to both the value and
        *other*.
        """

        _check_same_type(self, other)

        return self._bits & other._bits != 0

    def union(self, other: Self, /) -> Self:
        """..."""

        _check_same_type(self, other)

        return self.__class__._make(self._bits | other._bits)

    def intersection(self, other: Self, /) -> Self:
        """..."""

        _check_same_type(self, other)

        return self.__class__._make(self._bits & other._bits)

    def difference(self, other: Self, /) -> Self:
        """..."""

        _check_same_type(self, other)

        return self.__class__._make(self._bits & ~other._bits)

    def symmetric_difference(self, other: Self, /) -> Self:
        """..."""

        _check_same_type(self, other)

        return self.__class__._make(self._bits ^ other._bits)

    def complement(self, /) -> Self:
        """
        Returns all declared flags that are not stored in the value. Bits
        outside the all-flags mask are never set in the result.
        """

        cls = self.__class__

        return cls._make(~self._bits & cls._all_)

    def insert(self, other: Self, /) -> None:
        """
        Inserts the flags of *other* in place.
        """

        _check_same_type(self, other)

        self._bits |= other._bits

    def remove(self, other: Self, /) -> None:
        """
        Removes the flags of *other* in place.
        """

        _check_same_type(self, other)

        self._bits &= ~other._bits

    def toggle(self, other: Self, /) -> None:
        """
        Inserts the flags of *other* that are not stored and removes the ones
        that are, in place.
        """

        _check_same_type(self, other)

        self._bits ^= other._bits

    def set(self, other: Self, /, value: bool) -> None:
        """
        Inserts (if *value* is true) or removes (otherwise) the flags of
        *other* in place.
        """

        _check_same_type(self, other)

        if value:
            self._bits |= other._bits
        else:
            self._bits &= ~other._bits

    def extend(self, values: Iterable[Self], /) -> None:
        """
        Inserts the flags of every item of *values* in place. The value is
        left unchanged if any item has a different type.
        """

        self._bits |= self.__class__.from_iter(values)._bits


def _resolve_references(
    name: str,
    expression: str,
    resolved: Mapping[str, int],
    /,
) -> int:
    bits = 0

    for reference in expression.split("|"):
        reference = reference.strip()

        try:
            bits |= resolved[reference]
        except KeyError:
            msg = (
                f"flag {name!r} references {reference!r},"
                " which is not declared before it"
            )
            raise ValueError(msg) from None

    return bits


def flags(
    name: str,
    declarations: Mapping[str, int | str] | Iterable[tuple[str, int | str]],
    /,
    *,
    width: int | DefaultType = DEFAULT,
    signed: bool | DefaultType = DEFAULT,
    module: str | None = None,
    qualname: str | None = None,
) -> FlagsType:
    """
    Define a flag set type named *name* from *declarations*.

    *declarations* is a mapping or an iterable of ``(name, value)`` pairs in
    declaration order. A value is an integer, or a string of previously
    declared names joined with ``|`` for composite flags.

    *module* and *qualname* set where the type can be found (needed for
    pickling); *module* defaults to the caller's module.

    Example:
      >>> Access = flags(
      ...     'Access',
      ...     [('R', 0b01), ('W', 0b10), ('RW', 'R | W')],
      ...     width=8,
      ... )
      >>> Access.from_bits(0b11) == Access.RW
      True

    Raises:
      ValueError:
        if a name is invalid or declared twice, or a reference is unknown.
      TypeError:
        if a value is neither an integer nor a string.
      OverflowError:
        if a value is out of range for the representation.
    """

    if isinstance(declarations, Mapping):
        declarations = declarations.items()

    resolved = {}

    for flag_name, value in declarations:
        if (
            not isinstance(flag_name, str)
            or not flag_name.isidentifier()
            or iskeyword(flag_name)
            or flag_name.startswith("_")
        ):
            msg = f"invalid flag name: {flag_name!r}"
            raise ValueError(msg)

        if flag_name in resolved:
            msg = f"flag {flag_name!r} is declared more than once"
            raise ValueError(msg)

        if isinstance(value, str):
            value = _resolve_references(flag_name, value, resolved)
        elif isinstance(value, bool) or not isinstance(value, int):
            msg = (
                f"value of flag {flag_name!r} must be an integer or a string,"
                f" not {value.__class__.__qualname__}"
            )
            raise TypeError(msg)

        resolved[flag_name] = value

    if module is None:
        try:
            module = sys._getframe(1).f_globals.get("__name__", "__main__")
        except (AttributeError, ValueError):
            pass

    namespace = {**resolved}

    if module is not None:
        namespace["__module__"] = module

    if qualname is not None:
        namespace["__qualname__"] = qualname

    # warnings point to our caller
    return FlagsType(
        name,
        (Flags,),
        namespace,
        width=width,
        signed=signed,
        _stacklevel=2,
    )
