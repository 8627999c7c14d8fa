from typing import Any, Callable, Dict, FrozenSet, List
from collections import OrderedDict
from .netlist import Netlist
from .exceptions import SimulationException
from .utils import vprint, VerbosityLevels

"""
A discrete time, cycle based simulator.

Every call to 'tick' is one clock cycle, executed in two phases:

    1. Settle: every register publishes its current (pre-tick) value, external inputs are applied
       and the combinational blocks are evaluated once, in rank order. Since the netlist was
       verified to be free of combinational loops, a single pass is enough: a block is only
       evaluated after every block it depends on.
    2. Commit: every register samples its next value from the settled nets, then every register
       takes its new value. No register can observe the new value of another one within the same tick.

There is no iterative settling: feedback is only allowed through registers.
"""

class SettledNets(object):
    """
    The value of every net after the settle phase of a tick
    """
    def __init__(self, now: int, values: Dict[str, Any], unconstrained: FrozenSet[str]):
        self.now = now
        self.values = values
        self.unconstrained = unconstrained

    def __getitem__(self, net_name: str) -> Any:
        return self.values[net_name]

    def __contains__(self, net_name: str) -> bool:
        return net_name in self.values

    def is_unconstrained(self, net_name: str) -> bool:
        return net_name in self.unconstrained


class Simulator(object):
    def __init__(self, netlist: Netlist):
        self.netlist = netlist.elaborate()
        self.now = 0
        self._evaluation_order = self.netlist.get_evaluation_order()
        self._checkers: List[Callable[[SettledNets], None]] = []

    def add_checker(self, checker: Callable[[SettledNets], None]) -> None:
        """
        Registers a callback that gets to inspect the settled nets of every tick before the commit phase.
        Checkers are only called in debug mode (i.e. when __debug__ is True).
        """
        self._checkers.append(checker)

    def settle(self, **inputs: Any) -> SettledNets:
        values: Dict[str, Any] = OrderedDict()
        unconstrained = set()
        unknown = tuple(name for name in inputs.keys() if name not in self.netlist.inputs)
        if len(unknown) > 0:
            raise SimulationException(f"Unknown input(s): {', '.join(unknown)}", self.netlist)
        for name, external_input in self.netlist.inputs.items():
            if name in inputs:
                values[name] = external_input.net_type.validate_sim_value(inputs[name], external_input)
            else:
                values[name] = external_input.net_type.get_default_sim_value()
        for register in self.netlist.registers.values():
            values[register.output_net] = register.value
        for block in self._evaluation_order:
            outputs, block_unconstrained = block.settle(values)
            values.update(outputs)
            unconstrained |= block_unconstrained
        settled = SettledNets(self.now, values, frozenset(unconstrained))
        if __debug__:
            for checker in self._checkers:
                checker(settled)
        return settled

    def commit(self, settled: SettledNets) -> None:
        if settled.now != self.now:
            raise SimulationException(f"Can't commit values settled at tick {settled.now} at tick {self.now}", self.netlist)
        registers = tuple(self.netlist.registers.values())
        next_values = tuple(register.sample(settled.values) for register in registers)
        for register, next_value in zip(registers, next_values):
            register.commit(next_value)
        self.now += 1

    def tick(self, **inputs: Any) -> SettledNets:
        settled = self.settle(**inputs)
        self.commit(settled)
        return settled

    def reset(self) -> None:
        for register in self.netlist.registers.values():
            register.reset()
        self.now = 0

    def peek(self, register_name: str) -> Any:
        try:
            return self.netlist.registers[register_name].value
        except KeyError:
            raise SimulationException(f"No register named '{register_name}'", self.netlist)

    def log(self, *args, **kwargs):
        vprint(VerbosityLevels.simulation, f"{self.now:>7} ", *args, **kwargs)
