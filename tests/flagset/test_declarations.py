#!/usr/bin/env python3

# SPDX-FileCopyrightText: 2025 Ilya Egorov <0x42005e1f@gmail.com>
# SPDX-License-Identifier: 0BSD

import logging
import pickle
import warnings

import pytest

import flagset
import flagset._flags


class Base(flagset.Flags, width=16, signed=True):
    def describe(self, /):
        return f"<{self}>"


class Derived(Base):
    A = 0b01
    B = 0b10


class TestClassSyntax:
    def test_declaration_order(self, /):
        class Ordered(flagset.Flags, width=8):
            C = 0b100
            A = 0b001
            B = 0b010

        assert [str(value) for value in Ordered] == ["C", "A", "B"]
        assert str(Ordered.all()) == "C | A | B"

    def test_composite(self, /):
        class Composite(flagset.Flags, width=8):
            A = 0b01
            B = 0b10
            AB = A | B

        assert Composite.AB == Composite.A | Composite.B
        assert Composite.AB.bits() == 0b11
        assert len(Composite) == 3

    def test_default_width(self, /, monkeypatch):
        class Implicit(flagset.Flags):
            A = 1

        assert Implicit.representation is flagset.U32

        monkeypatch.setattr(flagset._flags, "_DEFAULT_WIDTH", 64)

        class Wide(flagset.Flags):
            A = 1 << 63

        assert Wide.representation is flagset.U64

    def test_wide(self, /):
        class Huge(flagset.Flags, width=128):
            LOW = 1
            HIGH = 1 << 127

        value = Huge.LOW | Huge.HIGH

        assert value.is_all()
        assert value.bits() == (1 << 127) | 1
        assert str(~Huge.LOW) == "HIGH"

        with pytest.raises(OverflowError):
            Huge.from_bits(1 << 128)

    def test_sign_bit_only(self, /):
        class Sign(flagset.Flags, width=8, signed=True):
            NEG = -128

        assert Sign.all().bits() == -128
        assert Sign.from_bits(-128) == Sign.NEG

        with pytest.raises(flagset.UnrecognizedBitsError):
            Sign.from_bits(-1)

    def test_invalid_width(self, /):
        with pytest.raises(ValueError):

            class Odd(flagset.Flags, width=24):
                A = 1

    def test_unknown_keywords(self, /):
        with pytest.raises(TypeError):

            class Unknown(flagset.Flags, width=8, size=8):
                A = 1

    def test_ignored_attributes(self, /):
        class Mixed(flagset.Flags, width=8):
            A = 1
            _private = 2
            label = "mixed"
            ratio = 0.5

            def method(self, /):
                return 3

        assert list(Mixed) == [Mixed.A]
        assert Mixed._private == 2
        assert Mixed.label == "mixed"
        assert Mixed.A.method() == 3
        assert "label" not in Mixed

    def test_empty_declaration(self, /):
        class Nothing(flagset.Flags, width=8):
            pass

        assert len(Nothing) == 0
        assert Nothing.all() == Nothing.empty()
        assert Nothing.empty().is_all()
        assert str(Nothing.from_bits_unchecked(1)) == "0x1"

        with pytest.raises(flagset.UnrecognizedBitsError):
            Nothing.from_bits(1)

    def test_constants_are_read_only(self, /):
        class Locked(flagset.Flags, width=8):
            A = 1

        with pytest.raises(AttributeError):
            Locked.A = Locked.empty()
        with pytest.raises(AttributeError):
            del Locked.A

        assert Locked.A.bits() == 1

        Locked.extra = 42

        assert Locked.extra == 42


class TestDeclarationErrors:
    @pytest.mark.parametrize(
        "name",
        ["bits", "all", "empty", "contains", "insert", "copy", "mro"],
    )
    def test_reserved_names(self, /, name):
        with pytest.raises(ValueError):
            flagset.FlagsType(
                "Reserved",
                (flagset.Flags,),
                {name: 1},
                width=8,
            )

        with pytest.raises(ValueError):
            flagset.flags("Reserved", {name: 1}, width=8)

    def test_reserved_names_of_bases(self, /):
        with pytest.raises(ValueError):

            class Clashing(Base):
                describe = 1

    def test_boolean_values(self, /):
        with pytest.raises(TypeError):

            class Boolean(flagset.Flags, width=8):
                A = True

        with pytest.raises(TypeError):
            flagset.flags("Boolean", {"A": False}, width=8)

    def test_out_of_range_values(self, /):
        with pytest.raises(OverflowError, match="'BIG'"):

            class Big(flagset.Flags, width=8):
                BIG = 1 << 8

        with pytest.raises(OverflowError, match="'NEGATIVE'"):

            class Negative(flagset.Flags, width=8):
                NEGATIVE = -1

        with pytest.raises(OverflowError):

            class Positive(flagset.Flags, width=8, signed=True):
                POSITIVE = 0x80

    def test_extension(self, /):
        with pytest.raises(TypeError):

            class Extended(Derived):
                C = 0b100

        with pytest.raises(TypeError):

            class Empty(Derived):
                pass


class TestInheritance:
    def test_representation(self, /):
        assert Derived.representation is flagset.I16
        assert Base.representation is flagset.I16

    def test_overridden_representation(self, /):
        class Narrow(Base, width=8):
            A = 1

        assert Narrow.representation is flagset.I8

        class Unsigned(Base, signed=False):
            A = 1

        assert Unsigned.representation is flagset.U16

    def test_methods(self, /):
        assert (Derived.A | Derived.B).describe() == "<A | B>"
        assert isinstance(Derived.A, Base)

    def test_pickling(self, /):
        value = Derived.A | Derived.B

        assert pickle.loads(pickle.dumps(value)) == value


class TestFunctionalSyntax:
    def test_mapping(self, /):
        Mode = flagset.flags("Mode", {"R": 0b01, "W": 0b10}, width=8)

        assert Mode.__name__ == "Mode"
        assert Mode.__module__ == __name__
        assert issubclass(Mode, flagset.Flags)
        assert list(Mode) == [Mode.R, Mode.W]
        assert Mode.representation is flagset.U8

    def test_pairs(self, /):
        Mode = flagset.flags("Mode", [("R", 0b01), ("W", 0b10)])

        assert Mode.representation is flagset.U32
        assert Mode.all().bits() == 0b11

    def test_generator(self, /):
        Bits = flagset.flags(
            "Bits",
            ((f"BIT{i}", 1 << i) for i in range(64)),
            width=64,
        )

        assert len(Bits) == 64
        assert Bits.all().bits() == (1 << 64) - 1
        assert Bits.BIT63.bits() == 1 << 63

    def test_references(self, /):
        Mode = flagset.flags(
            "Mode",
            [
                ("R", 0b001),
                ("W", 0b010),
                ("X", 0b100),
                ("RW", "R | W"),
                ("RWX", "RW|X"),
            ],
            width=8,
        )

        assert Mode.RW == Mode.R | Mode.W
        assert Mode.RWX.is_all()

    def test_forward_references(self, /):
        with pytest.raises(ValueError):
            flagset.flags("Mode", [("RW", "R | W"), ("R", 1), ("W", 2)])

        with pytest.raises(ValueError):
            flagset.flags("Mode", [("R", 1), ("X", "")])

    def test_duplicates(self, /):
        with pytest.raises(ValueError):
            flagset.flags("Mode", [("R", 1), ("R", 2)])

    @pytest.mark.parametrize(
        "name",
        ["", "1A", "A B", "_A", "__A__", "class", None],
    )
    def test_invalid_names(self, /, name):
        with pytest.raises(ValueError):
            flagset.flags("Mode", [(name, 1)])

    def test_invalid_values(self, /):
        with pytest.raises(TypeError):
            flagset.flags("Mode", {"A": 1.0})
        with pytest.raises(TypeError):
            flagset.flags("Mode", {"A": None})

    def test_module_and_qualname(self, /):
        Mode = flagset.flags(
            "Mode",
            {"R": 1},
            module="package.module",
            qualname="Namespace.Mode",
        )

        assert Mode.__module__ == "package.module"
        assert Mode.__qualname__ == "Namespace.Mode"
        assert repr(Mode.R) == "package.module.Namespace.Mode(R)"

    def test_independent_types(self, /):
        A = flagset.flags("Mode", {"R": 1})
        B = flagset.flags("Mode", {"R": 1})

        assert A is not B
        assert A.R != B.R

        with pytest.raises(TypeError):
            A.R.contains(B.R)


class TestZeroFlagWarnings:
    def test_disabled(self, /, monkeypatch):
        monkeypatch.setattr(flagset._flags, "_ZERO_FLAG_WARNINGS_ENABLED", False)

        with warnings.catch_warnings():
            warnings.simplefilter("error")

            class Quiet(flagset.Flags, width=8):
                NONE = 0

        assert Quiet.NONE.is_empty()

    def test_enabled(self, /, monkeypatch):
        monkeypatch.setattr(flagset._flags, "_ZERO_FLAG_WARNINGS_ENABLED", True)

        with pytest.warns(flagset.ZeroFlagWarning, match="'NONE'") as record:

            class Loud(flagset.Flags, width=8):
                NONE = 0
                SOME = 1

        assert len(record) == 1
        assert record[0].filename == __file__

        with pytest.warns(flagset.ZeroFlagWarning, match="'NONE'") as record:
            flagset.flags("Loud", {"NONE": 0, "SOME": 1})

        assert len(record) == 1
        assert record[0].filename == __file__


class TestLogging:
    def test_definition(self, /, caplog):
        with caplog.at_level(logging.DEBUG, logger="flagset._flags"):

            class Logged(flagset.Flags, width=8):
                A = 1
                B = 2

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.DEBUG
        assert "Logged" in caplog.records[0].getMessage()
        assert "u8" in caplog.records[0].getMessage()
        assert "2 flags" in caplog.records[0].getMessage()
