#!/usr/bin/python3
import sys
from pathlib import Path
sys.path.append(str(Path(__file__).parent / ".."))

from kror import *
from test_utils import *

class States(EnumType):
    width = 2
    idle = Variant("00")
    busy = Variant("01")
    flush = Variant("10")

def test_control_fsm_transitions():
    fsm = build_fsm()
    assert fsm.get_next_state(Status.T0, {"run": False, "done": False}) == Status.T0
    assert fsm.get_next_state(Status.T0, {"run": True, "done": False}) == Status.T1
    assert fsm.get_next_state(Status.T1, {"run": False, "done": True}) == Status.T0
    assert fsm.get_next_state(Status.T1, {"run": False, "done": False}) == Status.T2
    assert fsm.get_next_state(Status.T2, {"run": True, "done": True}) == Status.T0
    assert fsm.get_next_state(Status.T2, {"run": True, "done": False}) == Status.T3
    assert fsm.get_next_state(Status.T3, {"run": False, "done": True}) == Status.T0
    assert fsm.get_next_state(Status.T3, {"run": True, "done": False}) == Status.T3

def test_next_state_is_always_a_status():
    fsm = build_fsm()
    for state in Status:
        state = getattr(Status, state.name)
        for run in (False, True):
            for done in (False, True):
                next_state = fsm.get_next_state(state, {"run": run, "done": done})
                assert next_state.enum_type is Status

def test_possible_next_states():
    fsm = build_fsm()
    assert fsm.get_possible_next_states(Status.T0, {}) == {Status.T0, Status.T1}
    assert fsm.get_possible_next_states(Status.T1, {"done": True}) == {Status.T0}
    assert fsm.get_possible_next_states(Status.T1, {"done": False}) == {Status.T2}
    assert fsm.get_possible_next_states(Status.T3, {"done": False}) == {Status.T3}

def test_condition_nets():
    fsm = build_fsm()
    assert fsm.get_condition_nets() == ("run", "done")
    assert fsm.states == (Status.T0, Status.T1, Status.T2, Status.T3)

def test_default_state():
    fsm = FSM(States, reset_state=States.idle, default_state=States.idle)
    fsm.add_transition(States.idle, "start", States.busy)
    fsm.add_transition(States.busy, "~ready", States.busy)
    fsm.add_transition(States.busy, "abort", States.flush)
    assert fsm.get_next_state(States.idle, {"start": True, "ready": False, "abort": False}) == States.busy
    assert fsm.get_next_state(States.busy, {"start": False, "ready": False, "abort": True}) == States.busy
    assert fsm.get_next_state(States.busy, {"start": False, "ready": True, "abort": True}) == States.flush
    # No transition fires: fall back to the default
    assert fsm.get_next_state(States.busy, {"start": False, "ready": True, "abort": False}) == States.idle
    assert fsm.get_next_state(States.flush, {"start": True, "ready": True, "abort": True}) == States.idle

def test_no_default_holds_state():
    fsm = FSM(States, reset_state=States.idle)
    fsm.add_transition(States.idle, "start", States.busy)
    assert fsm.get_next_state(States.busy, {"start": True}) == States.busy

def test_fsm_in_netlist():
    fsm = FSM(States, reset_state=States.idle, state="state", next_state="state_next")
    fsm.add_transition(States.idle, "start", States.busy)
    fsm.add_transition(States.busy, 1, States.flush)
    fsm.add_transition(States.flush, 1, States.idle)
    netlist = Netlist()
    netlist.add_input("start", logic)
    netlist.add_register(Register("state", States, data="state_next"))
    netlist.add_block(fsm)
    simulator = Simulator(netlist)
    simulator.tick(start=False)
    assert simulator.peek("state") == States.idle
    simulator.tick(start=True)
    assert simulator.peek("state") == States.busy
    simulator.tick()
    assert simulator.peek("state") == States.flush
    simulator.tick()
    assert simulator.peek("state") == States.idle

def test_invalid_definitions():
    with ExpectError(SyntaxErrorException):
        FSM(Bits(2), reset_state=States.idle)
    with ExpectError(SyntaxErrorException):
        FSM(States, reset_state=Status.T0)
    fsm = FSM(States, reset_state=States.idle)
    with ExpectError(SyntaxErrorException):
        fsm.add_transition(States.idle, 1, Status.T1)
    with ExpectError(SyntaxErrorException):
        fsm.add_transition(States.idle, 0, States.busy)
    with ExpectError(SyntaxErrorException):
        fsm.add_transition(States.idle, "~", States.busy)
    with ExpectError(SyntaxErrorException):
        fsm.add_transition(States.idle, 2.5, States.busy)
    # An FSM without transitions can't be registered
    netlist = Netlist()
    with ExpectError(SyntaxErrorException):
        netlist.add_block(FSM(States, reset_state=States.idle))

def test_draw():
    graph = build_fsm().draw()
    source = graph.source
    assert "T0 -> T1" in source
    assert "T3 -> T3" in source
    assert "label=run" in source
    assert "label=done" in source
    assert "__reset__ -> T0" in source

if __name__ == "__main__":
    test_draw()
