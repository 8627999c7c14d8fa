#!/usr/bin/python3
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent / ".."))

from kror import *
from test_utils import *

def test_fieldless_variants():
    assert Status.T0.name == "T0"
    assert Status.T0.enum_type is Status
    assert Status.T0 != Status.T1
    assert Status.decode(BitVector("10")) == Status.T2
    assert encode(Status.T3) == BitVector("11")
    assert [variant.name for variant in Status] == ["T0", "T1", "T2", "T3"]

def test_decode_payload():
    value = decode(BitVector("0010 0110"), Instruction)
    assert value.is_a(Instruction.Add)
    assert value.rx == RegisterId.R1
    assert value.ry == RegisterId.R2
    assert value == Instruction.Add(RegisterId.R1, RegisterId.R2)
    assert value == Instruction.Add(rx=RegisterId.R1, ry=RegisterId.R2)
    assert repr(value) == "Instruction.Add(rx=RegisterId.R1, ry=RegisterId.R2)"

    mvi = decode(BitVector("0001 1100"), Instruction)
    assert mvi.is_a(Instruction.Mvi)
    assert mvi.rx == RegisterId.R3
    with ExpectError(AttributeError):
        mvi.ry

def test_undecodable():
    # Opcodes above 0011 don't exist
    with ExpectError(AmbiguousOrUndecodable):
        decode(BitVector("0100 0000"), Instruction)
    # Mvi requires the low two bits to be 0
    with ExpectError(AmbiguousOrUndecodable):
        decode(BitVector("0001 0001"), Instruction)
    with ExpectError(SimulationException):
        decode(BitVector("0000"), Instruction)

def test_first_match_wins():
    class Overlapping(EnumType):
        width = 3
        Specific = Variant("110")
        Generic = Variant("1??", low=Field(1, 0))
        Zero = Variant("0??")

    assert decode(BitVector("110"), Overlapping) == Overlapping.Specific
    generic = decode(BitVector("111"), Overlapping)
    assert generic.is_a(Overlapping.Generic)
    assert generic.low == BitVector("11")
    assert decode(BitVector("010"), Overlapping) == Overlapping.Zero

def test_round_trip():
    values = [Status.T0, Status.T1, Status.T2, Status.T3, BusSelector.Din, BusSelector.G]
    for rx in RegisterId:
        rx = getattr(RegisterId, rx.name)
        values.append(Instruction.Mvi(rx))
        values.append(BusSelector.Reg(rx))
        for ry in RegisterId:
            ry = getattr(RegisterId, ry.name)
            for variant in (Instruction.Mv, Instruction.Add, Instruction.Sub):
                values.append(variant(rx, ry))
    for value in values:
        assert value.variant.is_encodable()
        assert decode(encode(value), value.enum_type) == value

def test_wildcard_not_encodable():
    assert not BusSelector.Dontcare.variant.is_encodable()
    with ExpectError(SimulationException):
        encode(BusSelector.Dontcare)
    # ... but it can still be decoded, with either value in the wildcard bit
    assert decode(BitVector("110"), BusSelector) == BusSelector.Dontcare
    assert decode(BitVector("111"), BusSelector) == BusSelector.Dontcare

def test_pattern_collision():
    with ExpectError(PatternCollision):
        class Colliding(EnumType):
            width = 2
            A = Variant("01")
            B = Variant("01")
    with ExpectError(PatternCollision):
        class Shadowed(EnumType):
            width = 2
            A = Variant("1?")
            B = Variant("1?")

def test_definition_errors():
    with ExpectError(SyntaxErrorException):
        class WrongWidth(EnumType):
            width = 3
            A = Variant("01")
    with ExpectError(SyntaxErrorException):
        class FieldOverFixedBits(EnumType):
            width = 4
            A = Variant("01??", f=Field(2, 0))
    with ExpectError(SyntaxErrorException):
        class FieldOutside(EnumType):
            width = 4
            A = Variant("????", f=Field(5, 4))
    with ExpectError(SyntaxErrorException):
        class OverlappingFields(EnumType):
            width = 4
            A = Variant("????", f=Field(3, 1), g=Field(1, 0))
    with ExpectError(SyntaxErrorException):
        class NoWidth(EnumType):
            A = Variant("0")
    with ExpectError(SyntaxErrorException):
        Field(2, 0, Status)

def test_constructor_errors():
    with ExpectError(SimulationException):
        Instruction.Add(RegisterId.R0)
    with ExpectError(SimulationException):
        Instruction.Add(Status.T0, RegisterId.R0)
    with ExpectError(SimulationException):
        Instruction.Mvi(RegisterId.R0, RegisterId.R1)
    with ExpectError(SimulationException):
        Instruction.Mvi(rx=RegisterId.R0, ry=RegisterId.R1)

def test_all_values():
    assert len(list(Instruction.Mv.get_all_values())) == 16
    assert len(list(Instruction.Mvi.get_all_values())) == 4
    assert list(Status.T2.variant.get_all_values()) == [Status.T2]
    assert list(BusSelector.Reg.get_all_values()) == [BusSelector.Reg(reg) for reg in REGISTER_IDS]
    assert Field(1, 0).get_all_values() == (BitVector("00"), BitVector("01"), BitVector("10"), BitVector("11"))

def test_default_value():
    assert Status.get_default_sim_value() == Status.T0
    assert Instruction.get_default_sim_value() == Instruction.Mv(RegisterId.R0, RegisterId.R0)
    assert Instruction.Sub.default_value() == Instruction.Sub(RegisterId.R0, RegisterId.R0)

if __name__ == "__main__":
    test_round_trip()
