from typing import Any, List, Mapping, Optional, Union
from dataclasses import dataclass
from types import MappingProxyType
from collections import OrderedDict
from .bits import BitVector
from .register import Register
from .netlist import Netlist
from .simulator import Simulator, SettledNets
from .datapath import Bus, Alu, TWord
from .control_unit import ControlUnit, ControlSignals, build_fsm
from .decode_table import DecodeTable
from .enum_type import EnumValue
from .net_type import logic
from .isa import Status
from .exceptions import MultipleLatchEnableAsserted, SimulationException

# Register name -> (net, data net, enable net)
_REGISTERS = OrderedDict((
    ("R0", ("r0", "bus", "r0_in")),
    ("R1", ("r1", "bus", "r1_in")),
    ("R2", ("r2", "bus", "r2_in")),
    ("R3", ("r3", "bus", "r3_in")),
    ("A",  ("a",  "bus", "a_in")),
    ("G",  ("g",  "alu", "g_in")),
    ("IR", ("ir", "din", "ir_in")),
))

@dataclass(frozen=True)
class TickRecord(object):
    """
    Everything observable about a single tick, as settled before the clock edge.

    'instruction' is None in states where the instruction isn't decoded (T0).
    """
    tick: int
    status: EnumValue
    instruction: Optional[EnumValue]
    signals: ControlSignals
    bus: BitVector
    alu: BitVector
    done: bool

    @property
    def bus_is_unconstrained(self) -> bool:
        return self.bus.is_unconstrained


def check_one_hot_latch(settled: SettledNets) -> None:
    asserted = tuple(f"r{idx}_in" for idx in range(4) if settled[f"r{idx}_in"])
    if len(asserted) > 1:
        raise MultipleLatchEnableAsserted(f"At tick {settled.now} multiple register latch-enables are asserted: {', '.join(asserted)}")


class Computer(object):
    """
    The top level: four general purpose registers, the ALU operand (A) and result (G) registers, the
    instruction register (IR) and the control unit FSM, all hooked up to a single shared bus.

    Every tick takes the external 'run' and 'din' inputs and reports 'done'.
    """
    def __init__(self, initial: Optional[Mapping[str, Any]] = None, *, decode_table: Optional[DecodeTable] = None):
        self.netlist = Netlist("computer")
        self.netlist.add_input("run", logic)
        self.netlist.add_input("din", TWord)
        for name, (net, data, enable) in _REGISTERS.items():
            self.netlist.add_register(Register(name, TWord, data=data, enable=enable, output=net))
        self.netlist.add_register(Register("Status", Status, data="status_next", output="status"))

        self.fsm = build_fsm(state="status", next_state="status_next")
        self.control_unit = self.netlist.add_block(ControlUnit(self.fsm, decode_table))
        self.netlist.add_block(Bus())
        self.netlist.add_block(Alu(b="bus"))
        self.netlist.add_block(self.fsm)

        self.simulator = Simulator(self.netlist)
        self.simulator.add_checker(check_one_hot_latch)
        if initial is not None:
            for name, value in initial.items():
                self.poke(name, value)

    @property
    def status(self) -> EnumValue:
        return self.simulator.peek("Status")

    @property
    def now(self) -> int:
        return self.simulator.now

    def poke(self, name: str, value: Any) -> None:
        """
        Sets a register between ticks. Used to set up initial conditions.
        """
        try:
            register = self.netlist.registers[name]
        except KeyError:
            raise SimulationException(f"No register named '{name}'", self.netlist)
        register.force(value)

    def snapshot(self) -> Mapping[str, Any]:
        """
        Returns a read-only view of every register after the last commit
        """
        return MappingProxyType(OrderedDict((name, register.value) for name, register in self.netlist.registers.items()))

    def step(self, run: bool = False, din: Union[int, BitVector] = 0) -> TickRecord:
        settled = self.simulator.settle(run=run, din=din)
        record = TickRecord(
            tick=settled.now,
            status=settled["status"],
            instruction=self.control_unit.get_instruction(settled["status"], settled["ir"]),
            signals=ControlSignals.from_nets(settled),
            bus=settled["bus"],
            alu=settled["alu"],
            done=settled["done"],
        )
        self.simulator.commit(settled)
        instruction = record.instruction if record.instruction is not None else "-"
        self.simulator.log(f"{record.status.name} {instruction} bus={record.bus}{'(x)' if record.bus_is_unconstrained else ''} done={int(record.done)}")
        return record

    def tick(self, run: bool = False, din: Union[int, BitVector] = 0) -> bool:
        return self.step(run, din).done

    def execute(self, instruction: Union[EnumValue, int, BitVector], din: Union[int, BitVector] = 0) -> List[TickRecord]:
        """
        Issues a single instruction (must be called in T0) and runs it to completion.

        The instruction word is presented on 'din' in T0, 'din' is presented for every subsequent tick.
        Returns the record of every tick of the instruction.
        """
        if self.status != Status.T0:
            raise SimulationException(f"Instructions can only be issued in T0, not in {self.status.name}", self.netlist)
        if isinstance(instruction, EnumValue):
            instruction = instruction.encode()
        records = [self.step(run=True, din=instruction)]
        while not records[-1].done:
            if len(records) > len(Status.variants):
                raise SimulationException(f"Instruction didn't finish in {len(records)} ticks", self.netlist)
            records.append(self.step(run=False, din=din))
        return records

    def run_program(self, program: List[Union[EnumValue, int, BitVector]], din: Union[int, BitVector] = 0) -> List[List[TickRecord]]:
        return [self.execute(instruction, din) for instruction in program]
