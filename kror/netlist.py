from typing import Any, Dict, List, Optional, Tuple, Union
from collections import OrderedDict
from .block import Block, CombinationalBlock
from .register import Register
from .net_type import to_net_type
from .exceptions import SyntaxErrorException, CombinationalLoop
from .utils import vprint, VerbosityLevels

class ExternalInput(object):
    """
    Placeholder driver for nets that are set from outside of the netlist at every tick.
    """
    def __init__(self, name: str, net_type: Any):
        self.name = name
        self.net_type = to_net_type(net_type)

    def get_diagnostic_name(self, add_location: bool = False) -> str:
        return f"input '{self.name}'"

    def is_combinational(self) -> bool:
        return False


class Netlist(object):
    """
    The in-memory module graph: external inputs, registers and combinational blocks, connected by named nets.

    Every net has exactly one driver: an external input, a register output or a block output.
    """
    def __init__(self, name: str = "top"):
        self.name = name
        self.inputs: Dict[str, ExternalInput] = OrderedDict()
        self.registers: Dict[str, Register] = OrderedDict()
        self.blocks: Dict[str, CombinationalBlock] = OrderedDict()
        self._drivers: Dict[str, Union[ExternalInput, Block]] = OrderedDict()
        self._net_types: Dict[str, Any] = OrderedDict()
        self.rank_list: Optional[List[List[CombinationalBlock]]] = None
        self.rank_map: Optional[Dict[CombinationalBlock, int]] = None

    def get_diagnostic_name(self, add_location: bool = False) -> str:
        return f"netlist '{self.name}'"

    def _add_driver(self, net_name: str, driver: Any, net_type: Any) -> None:
        if self.is_elaborated():
            raise SyntaxErrorException("Can't modify netlist after elaboration", self)
        if net_name in self._drivers:
            raise SyntaxErrorException(f"Net '{net_name}' has multiple drivers: {self._drivers[net_name].get_diagnostic_name(True)} and {driver.get_diagnostic_name(True)}", self)
        self._drivers[net_name] = driver
        self._net_types[net_name] = net_type

    def add_input(self, name: str, net_type: Any) -> ExternalInput:
        external_input = ExternalInput(name, net_type)
        self._add_driver(name, external_input, external_input.net_type)
        self.inputs[name] = external_input
        return external_input

    def add_register(self, register: Register) -> Register:
        if register.name in self.registers:
            raise SyntaxErrorException(f"Register '{register.name}' already exists", self)
        self._add_driver(register.output_net, register, register.net_type)
        self.registers[register.name] = register
        return register

    def add_block(self, block: CombinationalBlock) -> CombinationalBlock:
        if not block.is_combinational():
            raise SyntaxErrorException("Only combinational blocks can be added with add_block", block)
        if block.name in self.blocks:
            raise SyntaxErrorException(f"Block '{block.name}' already exists", self)
        block.check_definition()
        for port_name, net_name in block.get_output_nets().items():
            self._add_driver(net_name, block, block.get_outputs()[port_name].net_type)
        self.blocks[block.name] = block
        return block

    def add(self, *things: Union[Register, CombinationalBlock]) -> None:
        for thing in things:
            if isinstance(thing, Register):
                self.add_register(thing)
            else:
                self.add_block(thing)

    def get_driver(self, net_name: str) -> Union[ExternalInput, Block]:
        try:
            return self._drivers[net_name]
        except KeyError:
            raise SyntaxErrorException(f"Net '{net_name}' has no driver", self)

    def get_net_type(self, net_name: str) -> Any:
        self.get_driver(net_name)
        return self._net_types[net_name]

    @property
    def nets(self) -> Tuple[str, ...]:
        return tuple(self._drivers.keys())

    def is_elaborated(self) -> bool:
        return self.rank_list is not None

    def _check_sinks(self) -> None:
        def check(sink: Block, port_name: str, net_name: str, sink_type: Any) -> None:
            driver_type = self.get_net_type(net_name)
            if sink_type is not None and driver_type is not None and sink_type != driver_type:
                raise SyntaxErrorException(f"Port '{port_name}' of type {sink_type} is connected to net '{net_name}' of type {driver_type}", sink)

        for block in self.blocks.values():
            for port_name, net_name in block.get_input_nets().items():
                check(block, port_name, net_name, block.get_inputs()[port_name].net_type)
        for register in self.registers.values():
            for port_name, net_name in register.get_input_nets().items():
                check(register, port_name, net_name, register.net_type if port_name == "data" else None)

    def _rank_netlist(self) -> Tuple[List[List[CombinationalBlock]], Dict[CombinationalBlock, int]]:
        """
        Creates a DAG from the combinational part of the netlist. Registers and external inputs
        break every path, so blocks only fed by them are of rank 0. Every other block is ranked one
        higher than the highest ranked block it depends on.

        Raises CombinationalLoop if the combinational blocks form a cycle.
        """
        rank_map: Dict[CombinationalBlock, int] = OrderedDict()
        rank_list: List[List[CombinationalBlock]] = []
        net_trace: List[str] = []
        visited_blocks = set()

        def _rank_block(block: CombinationalBlock) -> int:
            if block in rank_map:
                return rank_map[block]
            # Check for loops (i.e. if graph truly is a DAG)
            if block in visited_blocks:
                raise CombinationalLoop("Combinational loop found through nets:\n    " + " -> ".join(reversed(net_trace)), block)
            visited_blocks.add(block)
            rank = 0
            for net_name in block.get_input_nets().values():
                driver = self.get_driver(net_name)
                if not driver.is_combinational():
                    continue
                net_trace.append(net_name)
                rank = max(rank, _rank_block(driver) + 1)
                net_trace.pop()
            visited_blocks.remove(block)
            rank_map[block] = rank
            while len(rank_list) <= rank:
                rank_list.append([])
            rank_list[rank].append(block)
            return rank

        for block in self.blocks.values():
            _rank_block(block)
        return rank_list, rank_map

    def elaborate(self) -> 'Netlist':
        """
        Freezes the netlist and performs all definition-time checks
        """
        if self.is_elaborated():
            return self
        self._check_sinks()
        rank_list, rank_map = self._rank_netlist()
        self.rank_list, self.rank_map = rank_list, rank_map
        for rank, blocks in enumerate(self.rank_list):
            vprint(VerbosityLevels.elaboration, f"rank {rank}: {', '.join(block.name for block in blocks)}")
        return self

    def get_evaluation_order(self) -> Tuple[CombinationalBlock, ...]:
        if not self.is_elaborated():
            raise SyntaxErrorException("Netlist must be elaborated first", self)
        return tuple(block for blocks in self.rank_list for block in blocks)
