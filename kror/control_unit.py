from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass
from collections import OrderedDict
from .block import CombinationalBlock, Input, Output
from .net_type import logic
from .enum_type import EnumValue
from .decode_table import DecodeTable
from .fsm import FSM
from .exceptions import SyntaxErrorException
from .isa import Instruction, Status, BusSelector, register_index

@dataclass(frozen=True)
class ControlSignals(object):
    """
    Control signals driven by the control unit in a single tick.

    r_in holds the latch-enables of R0..R3 (at most one may be set).
    mode selects the ALU operation: False for add, True for subtract.
    """
    bus: EnumValue
    r_in: Tuple[bool, bool, bool, bool] = (False, False, False, False)
    g_in: bool = False
    a_in: bool = False
    ir_in: bool = False
    mode: bool = False
    done: bool = False

    def get_latched_registers(self) -> Tuple[int, ...]:
        return tuple(idx for idx, enable in enumerate(self.r_in) if enable)

    def as_outputs(self) -> Dict[str, Any]:
        ret_val = OrderedDict()
        ret_val["bus_sel"] = self.bus
        for idx, enable in enumerate(self.r_in):
            ret_val[f"r{idx}_in"] = enable
        ret_val["g_in"] = self.g_in
        ret_val["a_in"] = self.a_in
        ret_val["ir_in"] = self.ir_in
        ret_val["mode"] = self.mode
        ret_val["done"] = self.done
        return ret_val

    @staticmethod
    def from_nets(values: Any) -> 'ControlSignals':
        return ControlSignals(
            bus=values["bus_sel"],
            r_in=tuple(values[f"r{idx}_in"] for idx in range(4)),
            g_in=values["g_in"],
            a_in=values["a_in"],
            ir_in=values["ir_in"],
            mode=values["mode"],
            done=values["done"],
        )

def latch(register: EnumValue) -> Tuple[bool, bool, bool, bool]:
    """
    Returns the latch-enable vector that only enables 'register'
    """
    idx = register_index(register)
    return tuple(i == idx for i in range(4))

MODE_ADD = False
MODE_SUB = True

FETCH = ControlSignals(bus=BusSelector.Dontcare, ir_in=True)

def build_decode_table() -> DecodeTable:
    table = DecodeTable(Status, Instruction, name="control")

    # Every instruction starts by latching the instruction word
    table.add_common(Status.T0, FETCH)

    table.add(Status.T1, Instruction.Mv,  lambda i: ControlSignals(bus=BusSelector.Reg(i.ry), r_in=latch(i.rx), done=True))

    table.add(Status.T1, Instruction.Mvi, lambda i: ControlSignals(bus=BusSelector.Din, r_in=latch(i.rx), done=True))

    table.add(Status.T1, Instruction.Add, lambda i: ControlSignals(bus=BusSelector.Reg(i.rx), a_in=True))
    table.add(Status.T2, Instruction.Add, lambda i: ControlSignals(bus=BusSelector.Reg(i.ry), g_in=True, mode=MODE_ADD))
    table.add(Status.T3, Instruction.Add, lambda i: ControlSignals(bus=BusSelector.G, r_in=latch(i.rx), done=True))

    table.add(Status.T1, Instruction.Sub, lambda i: ControlSignals(bus=BusSelector.Reg(i.rx), a_in=True))
    table.add(Status.T2, Instruction.Sub, lambda i: ControlSignals(bus=BusSelector.Reg(i.ry), g_in=True, mode=MODE_SUB))
    table.add(Status.T3, Instruction.Sub, lambda i: ControlSignals(bus=BusSelector.G, r_in=latch(i.rx), done=True))
    return table

def build_fsm(**bindings: str) -> FSM:
    fsm = FSM(Status, reset_state=Status.T0, name="control_fsm", **bindings)
    fsm.add_transition(Status.T0, "run",  Status.T1)
    fsm.add_transition(Status.T0, 1,      Status.T0)
    fsm.add_transition(Status.T1, "done", Status.T0)
    fsm.add_transition(Status.T1, 1,      Status.T2)
    fsm.add_transition(Status.T2, "done", Status.T0)
    fsm.add_transition(Status.T2, 1,      Status.T3)
    fsm.add_transition(Status.T3, "done", Status.T0)
    fsm.add_transition(Status.T3, 1,      Status.T3)
    return fsm

class ControlUnit(CombinationalBlock):
    """
    Instruction decode: produces the control signals for the current microcycle of the current instruction.

    The block takes the raw instruction word. It is only decoded in states where the table depends on
    the instruction: in T0 IR holds whatever was on 'din', which need not be a valid instruction.

    The decode table is checked for completeness against the FSM when the block is registered:
    every (state, instruction) pair the FSM can reach must have an entry.
    """
    status = Input(Status)
    ir = Input(Instruction.width)
    bus_sel = Output(BusSelector)
    r0_in = Output(logic)
    r1_in = Output(logic)
    r2_in = Output(logic)
    r3_in = Output(logic)
    g_in = Output(logic)
    a_in = Output(logic)
    ir_in = Output(logic)
    mode = Output(logic)
    done = Output(logic)

    def __init__(self, fsm: FSM, decode_table: Optional[DecodeTable] = None, name: Optional[str] = "control_unit", **bindings: str):
        super().__init__(name, **bindings)
        self.fsm = fsm
        self.decode_table = decode_table if decode_table is not None else build_decode_table()

    def _check_signals(self, signals: Any) -> ControlSignals:
        if not isinstance(signals, ControlSignals):
            raise SyntaxErrorException(f"Decode table entries must produce ControlSignals, not {signals!r}", self)
        return signals

    def _signals_to_conditions(self, signals: ControlSignals) -> Dict[str, Any]:
        # Map our outputs onto the FSM condition nets they are connected to
        outputs = self._check_signals(signals).as_outputs()
        net_to_output = OrderedDict((self.get_net(port_name), port_name) for port_name in self.get_outputs().keys())
        conditions = OrderedDict()
        for net_name in self.fsm.get_condition_nets():
            fsm_net = self.fsm.get_net(net_name)
            if fsm_net in net_to_output:
                conditions[net_name] = outputs[net_to_output[fsm_net]]
        return conditions

    def check_definition(self) -> None:
        super().check_definition()
        self.decode_table.check_complete(self.fsm, self._signals_to_conditions)

    def get_instruction(self, status: EnumValue, ir: Any) -> Optional[EnumValue]:
        """
        Returns the decoded instruction, or None if 'status' doesn't need one
        """
        if self.decode_table.get_common(status) is not None:
            return None
        return self.decode_table.instruction_type.decode(ir)

    def evaluate(self, status, ir):
        instruction = self.get_instruction(status, ir)
        if instruction is None:
            signals = self.decode_table.get_common(status)
        else:
            signals = self.decode_table.lookup(status, instruction)
        return self._check_signals(signals).as_outputs()
