from typing import Any, Optional, Union
from .bits import BitVector, dont_care
from .exceptions import SimulationException, SyntaxErrorException

"""
Net types describe what kind of value is allowed on a net (or a port, or in a register).

There are three kinds:
    - logic: a single bit, represented as a Python bool
    - Bits(width): a BitVector of the given width
    - any EnumType subclass: a value of that enum (see enum_type.py)

All of them implement the same small protocol: get_type_name, validate_sim_value,
get_default_sim_value, get_dont_care_value and get_num_bits.
"""

class NetType(object):
    def get_type_name(self) -> str:
        raise NotImplementedError

    def validate_sim_value(self, value: Any, context: Optional[Any] = None) -> Any:
        """
        Converts 'value' into the canonical representation for this type or raises a SimulationException
        """
        raise NotImplementedError

    def get_default_sim_value(self) -> Any:
        raise NotImplementedError

    def get_dont_care_value(self) -> Any:
        raise NotImplementedError

    def get_num_bits(self) -> int:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.get_type_name()

    def __repr__(self) -> str:
        return self.get_type_name()


class Logic(NetType):
    def get_type_name(self) -> str:
        return "logic"

    def validate_sim_value(self, value: Any, context: Optional[Any] = None) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, BitVector) and value.width == 1:
            return bool(value)
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise SimulationException(f"Value {value!r} is not valid for a logic net", context)

    def get_default_sim_value(self) -> bool:
        return False

    def get_dont_care_value(self) -> bool:
        return False

    def get_num_bits(self) -> int:
        return 1

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Logic)

    def __hash__(self) -> int:
        return hash(Logic)

logic = Logic()


class Bits(NetType):
    def __init__(self, width: int):
        if not isinstance(width, int) or width <= 0:
            raise SyntaxErrorException(f"Bits width must be a positive integer, not {width!r}")
        self.width = width

    def get_type_name(self) -> str:
        return f"Bits({self.width})"

    def validate_sim_value(self, value: Any, context: Optional[Any] = None) -> BitVector:
        if isinstance(value, BitVector):
            if value.width != self.width:
                raise SimulationException(f"Value {value!r} of width {value.width} is not valid for {self.get_type_name()}", context)
            return value
        if isinstance(value, bool):
            raise SimulationException(f"Value {value!r} is not valid for {self.get_type_name()}", context)
        if isinstance(value, (int, str)):
            return BitVector(value, self.width)
        raise SimulationException(f"Value {value!r} of type {type(value)} is not valid for {self.get_type_name()}", context)

    def get_default_sim_value(self) -> BitVector:
        return BitVector(0, self.width)

    def get_dont_care_value(self) -> BitVector:
        return dont_care(self.width)

    def get_num_bits(self) -> int:
        return self.width

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Bits) and other.width == self.width

    def __hash__(self) -> int:
        return hash((Bits, self.width))


def to_net_type(thing: Union[int, NetType, type, None]) -> Any:
    """
    Normalizes a net type description: integers are turned into Bits of that width.
    """
    if thing is None:
        return None
    if isinstance(thing, bool):
        raise SyntaxErrorException(f"{thing!r} is not a valid net type")
    if isinstance(thing, int):
        return Bits(thing)
    if isinstance(thing, NetType):
        return thing
    from .enum_type import is_enum_type
    if is_enum_type(thing):
        return thing
    raise SyntaxErrorException(f"{thing!r} is not a valid net type")
