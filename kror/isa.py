from .enum_type import EnumType, EnumValue, Variant, Field

"""
Instruction set and the other enumerations of the computer.

Instruction words are 8 bits: the opcode is in [7:4], the destination register (rx) in [3:2]
and the source register (ry) in [1:0]. Mvi has no source register; the low two bits must be 0.
"""

class RegisterId(EnumType):
    width = 2
    R0 = Variant("00")
    R1 = Variant("01")
    R2 = Variant("10")
    R3 = Variant("11")

class Instruction(EnumType):
    width = 8
    Mv  = Variant("0000 ????", rx=Field(3, 2, RegisterId), ry=Field(1, 0, RegisterId))
    Mvi = Variant("0001 ??00", rx=Field(3, 2, RegisterId))
    Add = Variant("0010 ????", rx=Field(3, 2, RegisterId), ry=Field(1, 0, RegisterId))
    Sub = Variant("0011 ????", rx=Field(3, 2, RegisterId), ry=Field(1, 0, RegisterId))

class Status(EnumType):
    width = 2
    T0 = Variant("00")
    T1 = Variant("01")
    T2 = Variant("10")
    T3 = Variant("11")

class BusSelector(EnumType):
    width = 3
    Reg      = Variant("0??", reg=Field(1, 0, RegisterId))
    Din      = Variant("100")
    G        = Variant("101")
    Dontcare = Variant("11?")

REGISTER_IDS = (RegisterId.R0, RegisterId.R1, RegisterId.R2, RegisterId.R3)

def register_index(register: EnumValue) -> int:
    return register.variant.index
