from typing import Optional, Any

def _location(context: Any) -> str:
    try:
        return context.get_diagnostic_name(add_location=True)
    except Exception:
        return "<<NO LOCATION>>"

def _format(loc: str, message: Optional[str]) -> str:
    from textwrap import indent, wrap
    if message is None:
        return str(loc)
    message = "\n".join(indent("\n".join(wrap(line, width=70)), "    ") for line in message.split("\n"))
    return f"{loc}\n{message}"

class SyntaxErrorException(Exception):
    """
    Raised for problems in the definition of the design: these are detected once, when the
    module graph is loaded, before any simulation tick is executed.
    """
    def __init__(self, message, context = None):
        super().__init__(_format(_location(context), message))

class SimulationException(Exception):
    def __init__(self, message = None, context: Optional[Any] = None):
        super().__init__(_format(_location(context), message))

class PatternCollision(SyntaxErrorException):
    pass

class MissingCase(SyntaxErrorException):
    pass

class IncompleteDecodeTable(SyntaxErrorException):
    pass

class CombinationalLoop(SyntaxErrorException):
    pass

class AmbiguousOrUndecodable(SimulationException):
    pass

class MultipleLatchEnableAsserted(SimulationException):
    pass
