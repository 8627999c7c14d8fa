from .block import CombinationalBlock, Input, Output, Match, DontCare, pass_through
from .net_type import Bits, logic
from .isa import BusSelector, register_index

TWord = Bits(8)

class Bus(CombinationalBlock):
    """
    The shared data bus: a multiplexer over the four general purpose registers, the external
    data input and the ALU result register (G).

    Every register line goes through its own gated pass-through before reaching the multiplexer,
    so unselected registers drive zeros.
    """
    bus_sel = Input(BusSelector)
    r0 = Input(TWord)
    r1 = Input(TWord)
    r2 = Input(TWord)
    r3 = Input(TWord)
    din = Input(TWord)
    g = Input(TWord)
    bus = Output(TWord)

    select = Match(BusSelector, {
        BusSelector.Reg:      lambda sel, lines, din, g: lines[register_index(sel.reg)],
        BusSelector.Din:      lambda sel, lines, din, g: din,
        BusSelector.G:        lambda sel, lines, din, g: g,
        BusSelector.Dontcare: DontCare,
    })

    def evaluate(self, bus_sel, r0, r1, r2, r3, din, g):
        lines = tuple(
            pass_through(bus_sel.is_a(BusSelector.Reg) and register_index(bus_sel.reg) == idx, value)
            for idx, value in enumerate((r0, r1, r2, r3))
        )
        return {"bus": self.select(bus_sel, lines, din, g)}

def alu(mode: bool, a, b):
    # mode: 0 - add, 1 - subtract. Results wrap around at the word width.
    return a - b if mode else a + b

class Alu(CombinationalBlock):
    mode = Input(logic)
    a = Input(TWord)
    b = Input(TWord)
    alu = Output(TWord)

    def evaluate(self, mode, a, b):
        return {"alu": alu(mode, a, b)}
