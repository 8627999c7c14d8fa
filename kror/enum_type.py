from typing import Any, Dict, Iterator, Optional, Tuple, Union
from itertools import product
from collections import OrderedDict
from .bits import BitVector, PatternCode
from .exceptions import SyntaxErrorException, SimulationException, PatternCollision, AmbiguousOrUndecodable
from .utils import first, mask, vprint, VerbosityLevels

# Enum types are declared the same way Python Enums are: by subclassing EnumType and listing the variants
# as class attributes. The difference is that each variant is bound to a bit-pattern, not an integer,
# and that variants can carry payload fields:
#
#     class Instruction(EnumType):
#         width = 8
#         Mv  = Variant("0000 ????", rx=Field(3, 2, RegisterId), ry=Field(1, 0, RegisterId))
#         Mvi = Variant("0001 ??00", rx=Field(3, 2, RegisterId))
#
# Variants without fields are replaced by their (only) value after the class is created, so Status.T0 is
# a value. Variants with fields stay callable: Instruction.Mv(rx=RegisterId.R0, ry=RegisterId.R1).

def is_enum_type(thing: Any) -> bool:
    return isinstance(thing, EnumTypeMeta) and thing.variants is not None


class Field(object):
    """
    A payload field inside a variant pattern. 'msb' and 'lsb' are inclusive bit-positions.
    If 'field_type' is an EnumType, the field bits are decoded into a value of that type,
    otherwise they are kept as a BitVector.
    """
    def __init__(self, msb: int, lsb: int, field_type: Optional['EnumTypeMeta'] = None):
        if lsb < 0 or msb < lsb:
            raise SyntaxErrorException(f"Invalid field range [{msb}:{lsb}]")
        self.msb = msb
        self.lsb = lsb
        self.field_type = field_type
        if field_type is not None and not is_enum_type(field_type):
            raise SyntaxErrorException(f"Field type must be an EnumType, not {field_type!r}")
        if field_type is not None and field_type.width != self.width:
            raise SyntaxErrorException(f"Field [{msb}:{lsb}] is {self.width} bits wide, but {field_type.__name__} needs {field_type.width} bits")

    @property
    def width(self) -> int:
        return self.msb - self.lsb + 1

    @property
    def field_mask(self) -> int:
        return mask(self.width) << self.lsb

    def extract(self, word: BitVector) -> Any:
        bits = word[self.msb:self.lsb]
        if self.field_type is None:
            return bits
        return self.field_type.decode(bits)

    def convert(self, value: Any, context: Any) -> Any:
        if self.field_type is not None:
            if not isinstance(value, EnumValue) or value.enum_type is not self.field_type:
                raise SimulationException(f"Field expects a value of {self.field_type.__name__}, got {value!r}", context)
            return value
        if isinstance(value, BitVector):
            if value.width != self.width:
                raise SimulationException(f"Field expects {self.width} bits, got {value!r}", context)
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return BitVector(value, self.width)
        raise SimulationException(f"Invalid field value {value!r}", context)

    def default_value(self) -> Any:
        if self.field_type is None:
            return BitVector(0, self.width)
        return self.field_type.get_default_sim_value()

    def get_all_values(self) -> Tuple[Any, ...]:
        if self.field_type is None:
            return tuple(BitVector(value, self.width) for value in range(1 << self.width))
        return tuple(value for variant in self.field_type for value in variant.get_all_values())

    def encode(self, value: Any) -> int:
        if self.field_type is None:
            return value.value << self.lsb
        return value.encode().value << self.lsb


class Variant(object):
    def __init__(self, pattern: Union[str, PatternCode], **fields: Field):
        self.pattern = pattern if isinstance(pattern, PatternCode) else PatternCode(pattern)
        self.fields: Dict[str, Field] = OrderedDict(fields)
        self.name: Optional[str] = None
        self.enum_type: Optional['EnumTypeMeta'] = None
        self.index: Optional[int] = None

    @property
    def variant(self) -> 'Variant':
        return self

    def get_diagnostic_name(self, add_location: bool = False) -> str:
        type_name = self.enum_type.__name__ if self.enum_type is not None else "<unbound>"
        return f"{type_name}.{self.name}"

    def _check(self, width: int) -> None:
        if self.pattern.width != width:
            raise SyntaxErrorException(f"Pattern {self.pattern} is {self.pattern.width} bits wide, but the enum is {width} bits wide", self)
        covered = 0
        for field_name, field in self.fields.items():
            if field.msb >= width:
                raise SyntaxErrorException(f"Field '{field_name}' [{field.msb}:{field.lsb}] is outside of the {width}-bit pattern", self)
            if covered & field.field_mask != 0:
                raise SyntaxErrorException(f"Field '{field_name}' overlaps with another field", self)
            if field.field_mask & self.pattern.care_mask != 0:
                raise SyntaxErrorException(f"Field '{field_name}' must only cover wildcard bits of pattern {self.pattern}", self)
            covered |= field.field_mask
        self._covered_mask = covered

    def is_encodable(self) -> bool:
        """
        Returns True if every wildcard bit of the pattern is supplied by a payload field
        """
        return self.pattern.wildcard_mask & ~self._covered_mask == 0

    def matches(self, word: BitVector) -> bool:
        return self.pattern.matches(word)

    def __call__(self, *args, **kwargs) -> 'EnumValue':
        if len(args) > len(self.fields):
            raise SimulationException(f"Too many arguments: {self.name} has {len(self.fields)} fields", self)
        values = OrderedDict()
        for field_name, arg in zip(self.fields.keys(), args):
            values[field_name] = arg
        for field_name, arg in kwargs.items():
            if field_name not in self.fields:
                raise SimulationException(f"{self.name} has no field '{field_name}'", self)
            if field_name in values:
                raise SimulationException(f"Field '{field_name}' is specified multiple times", self)
            values[field_name] = arg
        missing = tuple(name for name in self.fields.keys() if name not in values)
        if len(missing) > 0:
            raise SimulationException(f"Missing field(s) {', '.join(missing)} for {self.name}", self)
        converted = OrderedDict((name, field.convert(values[name], self)) for name, field in self.fields.items())
        return EnumValue(self, converted)

    def default_value(self) -> 'EnumValue':
        """
        Returns a value of this variant with every field set to its default
        """
        return EnumValue(self, OrderedDict((name, field.default_value()) for name, field in self.fields.items()))

    def get_all_values(self) -> Iterator['EnumValue']:
        """
        Enumerates every value of this variant: all combinations of all possible field values
        """
        names = tuple(self.fields.keys())
        for combination in product(*(field.get_all_values() for field in self.fields.values())):
            yield EnumValue(self, OrderedDict(zip(names, combination)))

    def __repr__(self) -> str:
        return f"<Variant {self.get_diagnostic_name()} '{self.pattern}'>"


class EnumValue(object):
    """
    A run-time value of an enum type: a variant and the values of its payload fields.
    """
    __slots__ = ("variant", "fields")

    def __init__(self, variant: Variant, fields: Dict[str, Any]):
        self.variant = variant
        self.fields = fields

    @property
    def name(self) -> str:
        return self.variant.name

    @property
    def enum_type(self) -> 'EnumTypeMeta':
        return self.variant.enum_type

    def __getattr__(self, name: str) -> Any:
        # Only called if normal lookup fails
        if name in EnumValue.__slots__:
            raise AttributeError(name)
        try:
            return self.fields[name]
        except KeyError:
            raise AttributeError(f"{self.variant.get_diagnostic_name()} has no field '{name}'")

    def is_a(self, variant: Union[Variant, 'EnumValue']) -> bool:
        return self.variant is variant.variant

    def encode(self) -> BitVector:
        return encode(self)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, EnumValue):
            return NotImplemented
        return self.variant is other.variant and self.fields == other.fields

    def __ne__(self, other: Any) -> bool:
        if not isinstance(other, EnumValue):
            return NotImplemented
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash((id(self.variant), tuple(self.fields.values())))

    def __repr__(self) -> str:
        if len(self.fields) == 0:
            return self.variant.get_diagnostic_name()
        args = ", ".join(f"{name}={value!r}" for name, value in self.fields.items())
        return f"{self.variant.get_diagnostic_name()}({args})"

    def __str__(self) -> str:
        if len(self.fields) == 0:
            return self.name
        args = ", ".join(f"{value}" for value in self.fields.values())
        return f"{self.name}({args})"


class EnumTypeMeta(type):
    def __new__(mcs, name, bases, namespace):
        cls = super().__new__(mcs, name, bases, namespace)
        declared = [(attr, value) for attr, value in namespace.items() if isinstance(value, Variant)]
        if namespace.get("width", None) is None:
            if len(declared) > 0:
                raise SyntaxErrorException(f"EnumType {name} must declare its 'width'")
            cls.variants = None
            return cls
        if len(declared) == 0:
            raise SyntaxErrorException(f"EnumType {name} must have at least one variant")
        variants = []
        for idx, (attr, variant) in enumerate(declared):
            if variant.enum_type is not None:
                raise SyntaxErrorException(f"Variant {variant.get_diagnostic_name()} can't be re-used in {name}")
            variant.name = attr
            variant.enum_type = cls
            variant.index = idx
            variant._check(cls.width)
            for earlier in variants:
                if earlier.pattern == variant.pattern:
                    raise PatternCollision(f"Variants {earlier.name} and {variant.name} of {name} have the same pattern {variant.pattern}", variant)
                if earlier.pattern.overlaps(variant.pattern):
                    if earlier.pattern.is_exact() and variant.pattern.is_exact():
                        raise PatternCollision(f"Variants {earlier.name} and {variant.name} of {name} collide", variant)
                    vprint(VerbosityLevels.elaboration, f"NOTE: patterns of {name}.{earlier.name} ({earlier.pattern}) and {name}.{variant.name} ({variant.pattern}) overlap; {earlier.name} takes precedence")
            variants.append(variant)
        cls.variants = tuple(variants)
        for variant in variants:
            if len(variant.fields) == 0:
                setattr(cls, variant.name, EnumValue(variant, OrderedDict()))
        return cls

    def __iter__(cls):
        return iter(cls.variants)

    def get_diagnostic_name(cls, add_location: bool = False) -> str:
        return cls.__name__

    def get_type_name(cls) -> str:
        return cls.__name__

    def get_num_bits(cls) -> int:
        return cls.width

    def get_variant(cls, name: str) -> Variant:
        for variant in cls.variants:
            if variant.name == name:
                return variant
        raise SyntaxErrorException(f"{cls.__name__} has no variant '{name}'", cls)

    def decode(cls, word: BitVector) -> EnumValue:
        """
        Returns the value of the first variant (in declaration order) whose pattern matches 'word'
        """
        if not isinstance(word, BitVector):
            raise SimulationException(f"Can only decode BitVectors, not {word!r}", cls)
        if word.width != cls.width:
            raise SimulationException(f"Can't decode {word.width}-bit word {word} as {cls.__name__} ({cls.width} bits)", cls)
        for variant in cls.variants:
            if variant.matches(word):
                fields = OrderedDict((name, field.extract(word)) for name, field in variant.fields.items())
                return EnumValue(variant, fields)
        raise AmbiguousOrUndecodable(f"Word {word} doesn't match any variant of {cls.__name__}", cls)

    def validate_sim_value(cls, value: Any, context: Optional[Any] = None) -> EnumValue:
        if isinstance(value, EnumValue) and value.enum_type is cls:
            return value
        if isinstance(value, BitVector):
            return cls.decode(value)
        raise SimulationException(f"Value {value!r} is not valid for {cls.__name__}", context)

    def get_default_sim_value(cls) -> EnumValue:
        try:
            return cls.decode(BitVector(0, cls.width))
        except AmbiguousOrUndecodable:
            return first(cls.variants).default_value()

    def get_dont_care_value(cls) -> EnumValue:
        raise SyntaxErrorException(f"Enum outputs can't be don't-care: pick a variant of {cls.__name__} instead", cls)


class EnumType(object, metaclass=EnumTypeMeta):
    width: Optional[int] = None


def decode(word: BitVector, enum_type: EnumTypeMeta) -> EnumValue:
    return enum_type.decode(word)

def encode(value: EnumValue) -> BitVector:
    """
    Returns the word for an enum value. Only defined for variants where every wildcard bit of the
    pattern is filled in by a payload field.
    """
    variant = value.variant
    if not variant.is_encodable():
        raise SimulationException(f"Variant pattern {variant.pattern} contains wildcard bits and can't be encoded", variant)
    word = variant.pattern.value
    for name, field in variant.fields.items():
        word |= field.encode(value.fields[name])
    return BitVector(word, variant.pattern.width)
