from typing import Any, Dict, Optional
from .block import Block
from .net_type import to_net_type
from .exceptions import SyntaxErrorException

class Register(Block):
    """
    Clocked storage cell.

    At every clock edge: next = enable ? data : current

    'data' and 'enable' are the names of the nets the register samples. If 'enable' is None, the
    register is loaded at every edge. The value is published on the net 'output' (defaults to the
    name of the register).

    The edge is two-phase: 'sample' computes the next value from the settled nets of the current
    tick, 'commit' applies it. The simulator samples every register before committing any of them.
    """
    def __init__(self, name: str, net_type: Any, *, data: str, enable: Optional[str] = None, output: Optional[str] = None, reset_value: Any = None):
        super().__init__(name)
        self.net_type = to_net_type(net_type)
        if self.net_type is None:
            raise SyntaxErrorException("Registers must have a type", self)
        self.data_net = data
        self.enable_net = enable
        self.output_net = output if output is not None else name
        if reset_value is None:
            self.reset_value = self.net_type.get_default_sim_value()
        else:
            self.reset_value = self.net_type.validate_sim_value(reset_value, self)
        self._value = self.reset_value

    def is_combinational(self) -> bool:
        return False

    def get_input_nets(self) -> Dict[str, str]:
        ret_val = {"data": self.data_net}
        if self.enable_net is not None:
            ret_val["enable"] = self.enable_net
        return ret_val

    def get_output_nets(self) -> Dict[str, str]:
        return {"output": self.output_net}

    @property
    def value(self) -> Any:
        return self._value

    def reset(self) -> None:
        self._value = self.reset_value

    def force(self, value: Any) -> None:
        """
        Overrides the stored value outside of a clock edge. Meant for test harnesses between ticks.
        """
        self._value = self.net_type.validate_sim_value(value, self)

    def sample(self, net_values: Dict[str, Any]) -> Any:
        if self.enable_net is not None and not net_values[self.enable_net]:
            return self._value
        return self.net_type.validate_sim_value(net_values[self.data_net], self)

    def commit(self, next_value: Any) -> None:
        self._value = next_value
