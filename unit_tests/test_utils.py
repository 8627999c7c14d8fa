import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent / ".."))

from typing import Any
from kror import Computer, BitVector

class ExpectError(object):
    def __init__(self, *args):
        if len(args) == 0:
            self.filter = None
        else:
            self.filter = args
        self.exception = None
    def __enter__(self) -> 'ExpectError':
        return self
    def __exit__(self, exception_type, exception_value, traceback):
        if self.filter is None:
            # If no filter is given, ignore any exception, but make sure there was one
            if exception_type is None:
                assert False, "Exception expected, but none occurred"
            self.exception = exception_value
            return True
        else:
            # We have a list of exception types: make sure the exception is in it:
            if exception_type is None:
                assert False, "Exception expected, but none occurred"
            # Silence all filtered exceptions (including sub-classes), re-raise all others
            if issubclass(exception_type, self.filter):
                self.exception = exception_value
                return True
            return False

def word(value: Any, width: int = 8) -> BitVector:
    return BitVector(value, width)

def registers(computer: Computer, *names: str) -> dict:
    snapshot = computer.snapshot()
    if len(names) == 0:
        names = snapshot.keys()
    return {name: snapshot[name] for name in names}
