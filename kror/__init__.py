from .exceptions import *
from .bits import BitVector, PatternCode, concat, dont_care, is_unconstrained
from .net_type import NetType, Logic, logic, Bits
from .enum_type import EnumType, Variant, Field, EnumValue, decode, encode, is_enum_type
from .block import Input, Output, Match, DontCare, CombinationalBlock, pass_through
from .register import Register
from .netlist import Netlist
from .simulator import Simulator, SettledNets
from .fsm import FSM
from .decode_table import DecodeTable
from .utils import set_verbosity_level, VerbosityLevels
from .isa import RegisterId, Instruction, Status, BusSelector, REGISTER_IDS
from .datapath import Bus, Alu, alu
from .control_unit import ControlSignals, ControlUnit, build_decode_table, build_fsm, latch
from .computer import Computer, TickRecord
