from typing import Union, Optional, Any, Tuple
from .exceptions import SimulationException, SyntaxErrorException
from .utils import mask

"""
Value model of the kernel.

BitVector is the only kind of value that travels on nets at run-time. It is a fixed-width, 2-valued
word. PatternCode is its definition-time cousin: it can hold wildcard bits and is only ever used to
describe how enum variants are laid out in a word.

Literals follow the hardware description notation: '_' or '0' is a zero bit, '@' or '1' is a one bit,
'?' is a wildcard (PatternCode only). Spaces and "'" can be used to group digits.
"""

_ZERO_CHARS = "0_"
_ONE_CHARS = "1@"
_WILDCARD_CHARS = "?"
_SEPARATOR_CHARS = " '"

def _parse_literal(literal: str, allow_wildcard: bool) -> Tuple[int, int, int]:
    """
    Returns (width, value, care_mask) for a literal string. MSB is the leftmost character.
    """
    width = 0
    value = 0
    care = 0
    for char in literal:
        if char in _SEPARATOR_CHARS:
            continue
        value <<= 1
        care <<= 1
        if char in _ZERO_CHARS:
            care |= 1
        elif char in _ONE_CHARS:
            care |= 1
            value |= 1
        elif char in _WILDCARD_CHARS and allow_wildcard:
            pass
        else:
            raise SyntaxErrorException(f"Invalid character '{char}' in literal \"{literal}\"")
        width += 1
    if width == 0:
        raise SyntaxErrorException(f"Literal \"{literal}\" contains no bits")
    return width, value, care

class BitVector(object):
    """
    A fixed-width, immutable word of 2-valued bits.

    Slicing follows HDL conventions: word[7:4] returns bits 7 down to 4 (inclusive), word[0] returns the LSB.

    A BitVector can be marked as 'unconstrained'. Such values are produced for don't-care outputs:
    they hold a concrete (all-zero) placeholder, but nothing should depend on that placeholder.
    The flag doesn't participate in equality.
    """
    __slots__ = ("_width", "_value", "_unconstrained")

    def __init__(self, value: Union[int, str, 'BitVector'], width: Optional[int] = None, *, unconstrained: bool = False):
        if isinstance(value, BitVector):
            if width is not None and width != value.width:
                raise SimulationException(f"Can't convert {value!r} to a BitVector of width {width}")
            width = value.width
            unconstrained = unconstrained or value.is_unconstrained
            value = value.value
        elif isinstance(value, str):
            literal_width, value, _ = _parse_literal(value, allow_wildcard=False)
            if width is not None and width != literal_width:
                raise SimulationException(f"Literal of {literal_width} bits can't be used as a BitVector of width {width}")
            width = literal_width
        elif isinstance(value, int):
            if width is None:
                raise SimulationException("BitVector width must be specified when created from an integer")
            value = int(value)
        else:
            raise SimulationException(f"Can't create BitVector from value {value!r} of type {type(value)}")
        if width <= 0:
            raise SimulationException(f"BitVector width must be positive, not {width}")
        if value < 0 or value > mask(width):
            raise SimulationException(f"Value {value} doesn't fit in {width} bits")
        self._width = width
        self._value = value
        self._unconstrained = unconstrained

    @classmethod
    def wrap(cls, value: int, width: int, *, unconstrained: bool = False) -> 'BitVector':
        """
        Creates a BitVector from any integer, keeping the low 'width' bits (two's complement wrap-around).
        """
        return cls(value & mask(width), width, unconstrained=unconstrained)

    @property
    def width(self) -> int:
        return self._width

    @property
    def value(self) -> int:
        return self._value

    @property
    def is_unconstrained(self) -> bool:
        return self._unconstrained

    def __len__(self) -> int:
        return self._width

    def __int__(self) -> int:
        return self._value

    def __index__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __getitem__(self, key: Union[int, slice]) -> 'BitVector':
        if isinstance(key, slice):
            if key.step is not None:
                raise SimulationException("BitVector slices don't support steps")
            msb, lsb = key.start, key.stop
            if msb is None:
                msb = self._width - 1
            if lsb is None:
                lsb = 0
        else:
            msb = lsb = key
        if lsb < 0 or msb >= self._width or msb < lsb:
            raise SimulationException(f"Invalid slice [{msb}:{lsb}] of a {self._width}-bit BitVector")
        width = msb - lsb + 1
        return BitVector((self._value >> lsb) & mask(width), width, unconstrained=self._unconstrained)

    def _coerce(self, other: Any) -> 'BitVector':
        if isinstance(other, BitVector):
            if other.width != self._width:
                raise SimulationException(f"Width mismatch: {self!r} and {other!r}")
            return other
        if isinstance(other, int):
            return BitVector.wrap(other, self._width)
        return NotImplemented

    def __add__(self, other: Any) -> 'BitVector':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return BitVector.wrap(self._value + other.value, self._width, unconstrained=self._unconstrained or other.is_unconstrained)

    def __sub__(self, other: Any) -> 'BitVector':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return BitVector.wrap(self._value - other.value, self._width, unconstrained=self._unconstrained or other.is_unconstrained)

    def __radd__(self, other: Any) -> 'BitVector':
        return self.__add__(other)

    def __rsub__(self, other: Any) -> 'BitVector':
        other = self._coerce(other)
        if other is NotImplemented:
            return other
        return other.__sub__(self)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, BitVector):
            return self._width == other.width and self._value == other.value
        if isinstance(other, bool):
            return NotImplemented
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __ne__(self, other: Any) -> bool:
        ret_val = self.__eq__(other)
        if ret_val is NotImplemented:
            return ret_val
        return not ret_val

    def __hash__(self) -> int:
        return hash((self._width, self._value))

    def __str__(self) -> str:
        return format(self._value, f"0{self._width}b")

    def __repr__(self) -> str:
        if self._unconstrained:
            return f"BitVector('{self}', unconstrained=True)"
        return f"BitVector('{self}')"

def concat(*parts: BitVector) -> BitVector:
    """
    Concatenates BitVectors, first argument being the most significant.
    """
    if len(parts) == 0:
        raise SimulationException("Nothing to concatenate")
    value = 0
    width = 0
    unconstrained = False
    for part in parts:
        value = (value << part.width) | part.value
        width += part.width
        unconstrained |= part.is_unconstrained
    return BitVector(value, width, unconstrained=unconstrained)

def dont_care(width: int) -> BitVector:
    """
    Returns the placeholder used for don't-care outputs of the given width.
    """
    return BitVector(0, width, unconstrained=True)

def is_unconstrained(value: Any) -> bool:
    return getattr(value, "is_unconstrained", False)


class PatternCode(object):
    """
    A definition-time bit pattern, possibly containing wildcard bits.
    """
    def __init__(self, literal: str):
        self.literal = literal
        self.width, self.value, self.care_mask = _parse_literal(literal, allow_wildcard=True)

    @property
    def wildcard_mask(self) -> int:
        return mask(self.width) & ~self.care_mask

    def is_exact(self) -> bool:
        return self.wildcard_mask == 0

    def is_wildcard(self, bit: int) -> bool:
        return (self.wildcard_mask >> bit) & 1 == 1

    def matches(self, word: BitVector) -> bool:
        if word.width != self.width:
            raise SimulationException(f"Can't match {self.width}-bit pattern {self} against {word.width}-bit word {word}")
        return (word.value & self.care_mask) == self.value

    def overlaps(self, other: 'PatternCode') -> bool:
        """
        Returns True if there is at least one word that both patterns match.
        """
        if other.width != self.width:
            return False
        return (self.value ^ other.value) & self.care_mask & other.care_mask == 0

    def to_bit_vector(self) -> BitVector:
        if not self.is_exact():
            raise SyntaxErrorException(f"Pattern {self} contains wildcards and can't be converted to a value")
        return BitVector(self.value, self.width)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, PatternCode):
            return NotImplemented
        return self.width == other.width and self.value == other.value and self.care_mask == other.care_mask

    def __hash__(self) -> int:
        return hash((self.width, self.value, self.care_mask))

    def __str__(self) -> str:
        ret_val = ""
        for bit in reversed(range(self.width)):
            if (self.care_mask >> bit) & 1 == 0:
                ret_val += "?"
            else:
                ret_val += str((self.value >> bit) & 1)
        return ret_val

    def __repr__(self) -> str:
        return f"PatternCode('{self}')"
