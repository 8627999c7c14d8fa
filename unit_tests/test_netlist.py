#!/usr/bin/python3
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent / ".."))

from kror import *
from test_utils import *

class Increment(CombinationalBlock):
    value = Input(Bits(8))
    result = Output(Bits(8))

    def evaluate(self, value):
        return {"result": value + 1}

def test_rank_order():
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    # Added in reverse order on purpose: evaluation must still follow the dependencies
    netlist.add_block(Increment(name="third", value="y2", result="y3"))
    netlist.add_block(Increment(name="second", value="y1", result="y2"))
    netlist.add_block(Increment(name="first", value="x", result="y1"))
    netlist.elaborate()
    assert [block.name for block in netlist.get_evaluation_order()] == ["first", "second", "third"]
    assert netlist.rank_map[netlist.blocks["third"]] == 2
    simulator = Simulator(netlist)
    assert simulator.settle(x=5)["y3"] == 8

def test_combinational_loop():
    netlist = Netlist()
    netlist.add_block(Increment(name="a", value="b_out", result="a_out"))
    netlist.add_block(Increment(name="b", value="a_out", result="b_out"))
    with ExpectError(CombinationalLoop):
        netlist.elaborate()

def test_self_loop():
    netlist = Netlist()
    netlist.add_block(Increment(name="a", value="a_out", result="a_out"))
    with ExpectError(CombinationalLoop):
        Simulator(netlist)

def test_loop_through_register():
    # Feedback through a register is legal: a counter
    netlist = Netlist()
    netlist.add_register(Register("count", Bits(8), data="count_next"))
    netlist.add_block(Increment(name="inc", value="count", result="count_next"))
    simulator = Simulator(netlist)
    for expected in range(5):
        assert simulator.peek("count") == expected
        simulator.tick()
    assert simulator.now == 5
    simulator.reset()
    assert simulator.peek("count") == 0
    assert simulator.now == 0

def test_counter_wraps():
    netlist = Netlist()
    netlist.add_register(Register("count", Bits(8), data="count_next", reset_value=254))
    netlist.add_block(Increment(name="inc", value="count", result="count_next"))
    simulator = Simulator(netlist)
    simulator.tick()
    simulator.tick()
    assert simulator.peek("count") == 0

def test_atomic_commit():
    # Two registers swapping their values every tick: this only works if neither
    # sees the new value of the other within the same tick.
    netlist = Netlist()
    netlist.add_register(Register("x", Bits(8), data="y", reset_value=1))
    netlist.add_register(Register("y", Bits(8), data="x", reset_value=2))
    simulator = Simulator(netlist)
    simulator.tick()
    assert (simulator.peek("x"), simulator.peek("y")) == (2, 1)
    simulator.tick()
    assert (simulator.peek("x"), simulator.peek("y")) == (1, 2)

def test_register_enable():
    netlist = Netlist()
    netlist.add_input("d", Bits(8))
    netlist.add_input("en", logic)
    netlist.add_register(Register("q", Bits(8), data="d", enable="en"))
    simulator = Simulator(netlist)
    simulator.tick(d=42, en=False)
    assert simulator.peek("q") == 0
    simulator.tick(d=42, en=True)
    assert simulator.peek("q") == 42
    simulator.tick(d=7)
    assert simulator.peek("q") == 42

def test_register_force():
    register = Register("q", Bits(8), data="d")
    register.force(0x12)
    assert register.value == BitVector(0x12, 8)
    with ExpectError(SimulationException):
        register.force(BitVector(1, 4))
    with ExpectError(SyntaxErrorException):
        Register("q", None, data="d")

def test_multiple_drivers():
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    with ExpectError(SyntaxErrorException):
        netlist.add_block(Increment(name="inc", value="x", result="x"))
    with ExpectError(SyntaxErrorException):
        netlist.add_register(Register("x", Bits(8), data="x"))

def test_undriven_net():
    netlist = Netlist()
    netlist.add_block(Increment(name="inc", value="nowhere", result="y"))
    with ExpectError(SyntaxErrorException):
        netlist.elaborate()

def test_type_mismatch():
    netlist = Netlist()
    netlist.add_input("x", Bits(4))
    netlist.add_block(Increment(name="inc", value="x", result="y"))
    with ExpectError(SyntaxErrorException):
        netlist.elaborate()

def test_frozen_after_elaboration():
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    netlist.elaborate()
    with ExpectError(SyntaxErrorException):
        netlist.add_input("z", Bits(8))

def test_unknown_input():
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    simulator = Simulator(netlist)
    with ExpectError(SimulationException):
        simulator.settle(z=1)

def test_checker():
    seen = []
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    netlist.add_block(Increment(name="inc", value="x", result="y"))
    simulator = Simulator(netlist)
    simulator.add_checker(lambda settled: seen.append((settled.now, settled["y"])))
    simulator.tick(x=1)
    simulator.tick(x=2)
    assert seen == [(0, 2), (1, 3)]

def test_stale_commit():
    netlist = Netlist()
    netlist.add_input("x", Bits(8))
    simulator = Simulator(netlist)
    settled = simulator.settle(x=1)
    simulator.commit(settled)
    with ExpectError(SimulationException):
        simulator.commit(settled)

if __name__ == "__main__":
    test_atomic_commit()
