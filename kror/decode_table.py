from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from collections import OrderedDict
from .enum_type import EnumValue, Variant, is_enum_type
from .fsm import FSM
from .exceptions import SyntaxErrorException, IncompleteDecodeTable

class DecodeTable(object):
    """
    A function of (FSM state, instruction variant) to a control-signal vector.

    Entries are either constants or callables. Callables receive the decoded instruction value, so
    they can route payload fields (register selectors and such) into the signals.

    The table doesn't have to list every combination, only the ones the FSM can reach.
    That is verified by 'check_complete'.
    """
    def __init__(self, state_type: Any, instruction_type: Any, name: str = "decode_table"):
        if not is_enum_type(state_type):
            raise SyntaxErrorException(f"State type must be an EnumType, not {state_type!r}")
        if not is_enum_type(instruction_type):
            raise SyntaxErrorException(f"Instruction type must be an EnumType, not {instruction_type!r}")
        self.state_type = state_type
        self.instruction_type = instruction_type
        self.name = name
        self._entries: Dict[Tuple[EnumValue, Variant], Any] = OrderedDict()
        self._common: Dict[EnumValue, Any] = OrderedDict()

    def get_diagnostic_name(self, add_location: bool = False) -> str:
        return f"decode table '{self.name}'"

    def add(self, state: EnumValue, instruction: Union[Variant, EnumValue], entry: Any) -> None:
        if not isinstance(state, EnumValue) or state.enum_type is not self.state_type:
            raise SyntaxErrorException(f"{state!r} is not a state of {self.state_type.__name__}", self)
        variant = instruction.variant
        if variant.enum_type is not self.instruction_type:
            raise SyntaxErrorException(f"{variant.get_diagnostic_name()} is not a variant of {self.instruction_type.__name__}", self)
        key = (state, variant)
        if key in self._entries:
            raise SyntaxErrorException(f"Entry for {state.name}, {variant.name} already exists", self)
        self._entries[key] = entry

    def add_common(self, state: EnumValue, entry: Any) -> None:
        """
        Adds the same entry for every instruction variant. If the entry is a constant, it can be looked up
        through 'get_common' without knowing (or decoding) the instruction.
        """
        for variant in self.instruction_type:
            self.add(state, variant, entry)
        if not callable(entry):
            self._common[state] = entry

    def get_common(self, state: EnumValue) -> Optional[Any]:
        return self._common.get(state, None)

    def __contains__(self, key: Tuple[EnumValue, Union[Variant, EnumValue]]) -> bool:
        state, instruction = key
        return (state, instruction.variant) in self._entries

    def lookup(self, state: EnumValue, instruction: EnumValue) -> Any:
        try:
            entry = self._entries[(state, instruction.variant)]
        except KeyError:
            raise IncompleteDecodeTable(f"No entry for state {state.name} and instruction {instruction.name}", self)
        if callable(entry):
            return entry(instruction)
        return entry

    def get_reachable(self, fsm: FSM, signals_to_conditions: Callable[[Any], Dict[str, Any]], variant: Variant) -> List[EnumValue]:
        """
        Returns the states the FSM can reach from its reset state while executing an instruction of 'variant'.

        Every value of the variant (every combination of its payload fields) is explored, since entries
        can depend on the fields. 'signals_to_conditions' converts a signal vector from the table into the
        condition net values of the FSM. Condition nets it doesn't provide (external inputs) are considered free.
        Raises IncompleteDecodeTable if a reachable state has no entry.
        """
        reachable = [fsm.reset_state]
        for instruction in variant.get_all_values():
            visited = [fsm.reset_state]
            pending = [fsm.reset_state]
            while len(pending) > 0:
                state = pending.pop(0)
                if (state, variant) not in self._entries:
                    raise IncompleteDecodeTable(f"State {state.name} is reachable for instruction {instruction}, but has no entry", self)
                conditions = signals_to_conditions(self.lookup(state, instruction))
                for next_state in sorted(fsm.get_possible_next_states(state, conditions), key=lambda s: s.variant.index):
                    if next_state not in visited:
                        visited.append(next_state)
                        pending.append(next_state)
            for state in visited:
                if state not in reachable:
                    reachable.append(state)
        return reachable

    def check_complete(self, fsm: FSM, signals_to_conditions: Callable[[Any], Dict[str, Any]]) -> None:
        if fsm.state_type is not self.state_type:
            raise SyntaxErrorException(f"FSM states are of {fsm.state_type.__name__}, but the table is indexed by {self.state_type.__name__}", self)
        for variant in self.instruction_type:
            self.get_reachable(fsm, signals_to_conditions, variant)
