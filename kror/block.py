from typing import Any, Dict, Optional, Tuple, Set, Union
from collections import OrderedDict
from .exceptions import SyntaxErrorException, SimulationException, MissingCase
from .net_type import to_net_type
from .enum_type import is_enum_type, Variant, EnumValue
from .bits import is_unconstrained

class Port(object):
    """
    Port declaration for blocks. Ports are declared as class attributes:

        class Alu(CombinationalBlock):
            mode = Input(logic)
            a = Input(Bits(8))
            b = Input(Bits(8))
            alu = Output(Bits(8))

    If no net type is given, the port accepts any value.
    """
    def __init__(self, net_type: Any = None):
        self.net_type = to_net_type(net_type)
        self.name: Optional[str] = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def copy(self, name: str) -> 'Port':
        ret_val = type(self)(self.net_type)
        ret_val.name = name
        return ret_val

    def validate(self, value: Any, context: Any) -> Any:
        if self.net_type is None:
            return value
        return self.net_type.validate_sim_value(value, context)

class Input(Port):
    pass

class Output(Port):
    pass


class _DontCare(object):
    """
    Marker for outputs that are intentionally left unconstrained.
    """
    def __repr__(self) -> str:
        return "DontCare"

DontCare = _DontCare()

_NO_DEFAULT = object()

class Match(object):
    """
    A pattern-match expression over an enum type.

    'cases' maps variants (or variant values) to results. A result is either a constant or a callable,
    which is called with the matched value and any additional arguments passed to the match.

    A match must cover every variant of the enum or have a 'default'. This is checked when the
    containing block is registered with a netlist.
    """
    def __init__(self, enum_type: Any, cases: Dict[Union[Variant, EnumValue], Any], *, default: Any = _NO_DEFAULT):
        if not is_enum_type(enum_type):
            raise SyntaxErrorException(f"Match needs an EnumType, not {enum_type!r}")
        self.enum_type = enum_type
        self.cases: Dict[Variant, Any] = OrderedDict()
        for key, result in cases.items():
            variant = key.variant
            if variant in self.cases:
                raise SyntaxErrorException(f"Variant {variant.get_diagnostic_name()} is listed multiple times in match")
            self.cases[variant] = result
        self.default = default

    def has_default(self) -> bool:
        return self.default is not _NO_DEFAULT

    def check(self, context: Any = None) -> None:
        for variant in self.cases.keys():
            if variant.enum_type is not self.enum_type:
                raise SyntaxErrorException(f"Variant {variant.get_diagnostic_name()} doesn't belong to {self.enum_type.__name__}", context)
        if self.has_default():
            return
        missing = tuple(variant.name for variant in self.enum_type if variant not in self.cases)
        if len(missing) > 0:
            raise MissingCase(f"Match on {self.enum_type.__name__} doesn't cover variant(s) {', '.join(missing)} and has no default", context)

    def __call__(self, value: EnumValue, *args, **kwargs) -> Any:
        try:
            result = self.cases[value.variant]
        except KeyError:
            if not self.has_default():
                raise SimulationException(f"No case for {value!r} in match on {self.enum_type.__name__}")
            result = self.default
        if callable(result):
            return result(value, *args, **kwargs)
        return result


class Block(object):
    """
    Base class for everything that can be put in a netlist.

    Every port is bound to a net. By default a port is bound to the net with the same name;
    that can be overridden by passing <port name>=<net name> to the constructor.
    """
    def __init__(self, name: Optional[str] = None, **bindings: str):
        self.name = name if name is not None else type(self).__name__.lower()
        self._inputs: Dict[str, Port] = OrderedDict()
        self._outputs: Dict[str, Port] = OrderedDict()
        for cls in reversed(type(self).__mro__):
            for attr, value in vars(cls).items():
                if isinstance(value, Input):
                    self._inputs[attr] = value
                elif isinstance(value, Output):
                    self._outputs[attr] = value
        self._bindings: Dict[str, str] = OrderedDict()
        for port_name in tuple(self._inputs.keys()) + tuple(self._outputs.keys()):
            self._bindings[port_name] = port_name
        for port_name, net_name in bindings.items():
            if port_name not in self._bindings:
                raise SyntaxErrorException(f"Block has no port named '{port_name}'", self)
            self._bindings[port_name] = net_name

    def add_input(self, name: str, net_type: Any = None, net_name: Optional[str] = None) -> Port:
        if name in self._bindings:
            raise SyntaxErrorException(f"Port '{name}' already exists", self)
        port = Input(net_type).copy(name)
        self._inputs[name] = port
        self._bindings[name] = net_name if net_name is not None else name
        return port

    def get_inputs(self) -> Dict[str, Port]:
        return self._inputs

    def get_outputs(self) -> Dict[str, Port]:
        return self._outputs

    def get_net(self, port_name: str) -> str:
        return self._bindings[port_name]

    def get_input_nets(self) -> Dict[str, str]:
        return OrderedDict((port_name, self._bindings[port_name]) for port_name in self._inputs.keys())

    def get_output_nets(self) -> Dict[str, str]:
        return OrderedDict((port_name, self._bindings[port_name]) for port_name in self._outputs.keys())

    def get_diagnostic_name(self, add_location: bool = False) -> str:
        if add_location:
            return f"{type(self).__name__} '{self.name}'"
        return self.name

    def is_combinational(self) -> bool:
        """
        Returns True if the block is purely combinational, False otherwise
        """
        raise NotImplementedError

    def check_definition(self) -> None:
        """
        Called when the block is registered with a netlist. Raises SyntaxErrorException-derived errors
        for problems that can be detected without simulating.
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class CombinationalBlock(Block):
    """
    A pure function of its inputs. Subclasses implement 'evaluate', which receives all inputs
    as keyword arguments (by port name) and returns a dict of all outputs (by port name).

    Outputs can be set to DontCare, which gets replaced by a fixed placeholder value.
    """
    def is_combinational(self) -> bool:
        return True

    def get_matches(self) -> Dict[str, Match]:
        ret_val = OrderedDict()
        for cls in reversed(type(self).__mro__):
            for attr, value in vars(cls).items():
                if isinstance(value, Match):
                    ret_val[attr] = value
        for attr, value in vars(self).items():
            if isinstance(value, Match):
                ret_val[attr] = value
        return ret_val

    def check_definition(self) -> None:
        for match in self.get_matches().values():
            match.check(self)

    def evaluate(self, **inputs) -> Dict[str, Any]:
        raise NotImplementedError

    def settle(self, net_values: Dict[str, Any]) -> Tuple[Dict[str, Any], Set[str]]:
        """
        Evaluates the block on the current net values.
        Returns the new values for the output nets and the set of output nets that are unconstrained.
        """
        args = OrderedDict()
        for port_name, port in self._inputs.items():
            args[port_name] = port.validate(net_values[self._bindings[port_name]], self)
        results = self.evaluate(**args)
        if results is None:
            raise SimulationException("evaluate didn't return any outputs", self)
        extra = tuple(port_name for port_name in results.keys() if port_name not in self._outputs)
        if len(extra) > 0:
            raise SimulationException(f"evaluate returned values for unknown output(s) {', '.join(extra)}", self)
        ret_val = OrderedDict()
        unconstrained = set()
        for port_name, port in self._outputs.items():
            if port_name not in results:
                raise SimulationException(f"evaluate didn't return a value for output '{port_name}'", self)
            value = results[port_name]
            net_name = self._bindings[port_name]
            if value is DontCare:
                if port.net_type is None:
                    raise SimulationException(f"Output '{port_name}' has no type, so it can't be don't-care", self)
                value = port.net_type.get_dont_care_value()
                unconstrained.add(net_name)
            else:
                value = port.validate(value, self)
                if is_unconstrained(value):
                    unconstrained.add(net_name)
            ret_val[net_name] = value
        return ret_val, unconstrained


def pass_through(enable: bool, value: Any) -> Any:
    """
    Gated pass-through: returns 'value' if enabled, an all-zero word of the same width otherwise.
    """
    if enable:
        return value
    return type(value)(0, value.width)
