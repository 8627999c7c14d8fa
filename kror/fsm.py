from typing import Any, Dict, List, Optional, Set, Tuple, Union
from collections import OrderedDict
from itertools import product
from .block import CombinationalBlock, Input, Output
from .enum_type import EnumValue, is_enum_type
from .net_type import logic
from .exceptions import SyntaxErrorException, SimulationException

# Conditions are either the constant 1 (always taken), the name of a logic net, or the name of
# a logic net prefixed by '~' (taken when the net is 0).
TCondition = Union[int, bool, str]

def _get_condition_net(condition: TCondition) -> Optional[str]:
    if isinstance(condition, (int, bool)):
        return None
    return condition[1:] if condition.startswith("~") else condition

def _get_state_name(state: Any) -> str:
    if isinstance(state, EnumValue):
        return state.name
    return str(state)

class FSM(CombinationalBlock):
    """
    Next-state logic of a finite state machine.

    Transitions are evaluated in the order they were added: the first transition out of the current
    state with a true condition determines the next state. If none fires, the next state is
    'default_state', or the current state if there's no default.

    The state register itself is not part of the block: 'state' is an input, 'next_state' is an output.
    """
    state = Input()
    next_state = Output()

    def __init__(self, state_type: Any, reset_state: EnumValue, default_state: Optional[EnumValue] = None, name: Optional[str] = "fsm", **bindings: str):
        super().__init__(name, **bindings)
        if not is_enum_type(state_type):
            raise SyntaxErrorException(f"FSM states must be of an EnumType, not {state_type!r}", self)
        self.state_type = state_type
        self._inputs["state"] = Input(state_type).copy("state")
        self._outputs["next_state"] = Output(state_type).copy("next_state")
        self.reset_state = self._check_state(reset_state)
        self.default_state = self._check_state(default_state) if default_state is not None else None
        self._transitions: List[Tuple[EnumValue, TCondition, EnumValue]] = []

    def _check_state(self, state: Any) -> EnumValue:
        if not isinstance(state, EnumValue) or state.enum_type is not self.state_type:
            raise SyntaxErrorException(f"All states of an FSM must be of the same type. In this case all are expected to be of {self.state_type.__name__}, yet state {state!r} is not", self)
        return state

    def add_transition(self, current_state: EnumValue, condition: TCondition, new_state: EnumValue) -> None:
        self._check_state(current_state)
        self._check_state(new_state)
        if isinstance(condition, (int, bool)):
            if condition != 1:
                raise SyntaxErrorException(f"Constant conditions must be 1, not {condition!r}", self)
        elif isinstance(condition, str):
            net_name = _get_condition_net(condition)
            if len(net_name) == 0:
                raise SyntaxErrorException(f"Invalid condition '{condition}'", self)
            if net_name not in self._inputs:
                self.add_input(net_name, logic)
        else:
            raise SyntaxErrorException(f"Invalid condition {condition!r}: must be 1 or a net name", self)
        self._transitions.append((current_state, condition, new_state))

    @property
    def states(self) -> Tuple[EnumValue, ...]:
        ret_val = OrderedDict()
        ret_val[self.reset_state] = None
        for current_state, _, new_state in self._transitions:
            ret_val[current_state] = None
            ret_val[new_state] = None
        if self.default_state is not None:
            ret_val[self.default_state] = None
        return tuple(ret_val.keys())

    def get_condition_nets(self) -> Tuple[str, ...]:
        return tuple(port_name for port_name in self._inputs.keys() if port_name != "state")

    def check_definition(self) -> None:
        super().check_definition()
        if len(self._transitions) == 0:
            raise SyntaxErrorException("FSM has no transitions", self)

    def get_next_state(self, state: EnumValue, conditions: Dict[str, Any]) -> EnumValue:
        for current_state, condition, new_state in self._transitions:
            if current_state != state:
                continue
            if isinstance(condition, str):
                try:
                    value = bool(conditions[_get_condition_net(condition)])
                except KeyError:
                    raise SimulationException(f"No value for condition net '{_get_condition_net(condition)}'", self)
                if condition.startswith("~"):
                    value = not value
            else:
                value = True
            if value:
                return new_state
        return self.default_state if self.default_state is not None else state

    def get_possible_next_states(self, state: EnumValue, conditions: Dict[str, Any]) -> Set[EnumValue]:
        """
        Returns every state that can follow 'state', given the values of some of the condition nets.
        Condition nets not listed in 'conditions' are considered free: both of their values are tried.
        """
        free_nets = tuple(net_name for net_name in self.get_condition_nets() if net_name not in conditions)
        ret_val = set()
        for free_values in product((False, True), repeat=len(free_nets)):
            all_conditions = dict(conditions)
            all_conditions.update(zip(free_nets, free_values))
            ret_val.add(self.get_next_state(state, all_conditions))
        return ret_val

    def evaluate(self, state, **conditions):
        return {"next_state": self.get_next_state(state, conditions)}

    def draw(self, graph: Optional['Digraph'] = None) -> 'Digraph':
        from graphviz import Digraph

        f = Digraph(name = self.name) if graph is None else graph

        f.attr(rankdir='LR', size='8,5')

        f.node(name="__reset__", xlabel="reset", shape="point", height="0.2")
        f.edge("__reset__", _get_state_name(self.reset_state))
        if self.default_state is not None:
            f.node(name="__others__", xlabel="others", shape="point", fillcolor="gray", style="dashed", height="0.2")
            f.edge("__others__", _get_state_name(self.default_state), style="dashed")

        f.attr('node', shape='circle')
        for state in self.states:
            f.node(name=_get_state_name(state), label=_get_state_name(state))
        for current_state, condition, new_state in self._transitions:
            label = "" if not isinstance(condition, str) else condition
            f.edge(_get_state_name(current_state), _get_state_name(new_state), label=label)
        return f
