from typing import Any, Iterable
import sys

def first(collection: Iterable[Any]) -> Any:
    return next(iter(collection))

def mask(width: int) -> int:
    return (1 << width) - 1

class VerbosityLevels(object):
    none=-1
    elaboration=0
    simulation=1

    _verbosity_level: int = -1

def set_verbosity_level(verbosity_level: int) -> None:
    VerbosityLevels._verbosity_level = verbosity_level

def get_verbosity_level() -> int:
    return VerbosityLevels._verbosity_level

def verbose_enough(verbosity_level: int) -> bool:
    return get_verbosity_level() >= verbosity_level

def vprint(verbosity_level: int, *args, **kwargs):
    """
    Same as 'print', except it is printing only at certain verbosity levels, and always targets STDERR
    """
    if verbose_enough(verbosity_level):
        print(*args, **kwargs, file=sys.stderr)


class ScopedAttr(object):
    """
    A small object that allows the setting of an attribute of an object for the scope of a with block
    """
    def __init__(self, obj: Any, attr: str, value: Any):
        self.obj = obj
        self.attr = attr
        self.value = value
    def __enter__(self) -> 'ScopedAttr':
        if hasattr(self.obj, self.attr):
            self.old_value = getattr(self.obj, self.attr)
        setattr(self.obj, self.attr, self.value)
        return self
    def __exit__(self, exception_type, exception_value, traceback):
        if hasattr(self, "old_value"):
            setattr(self.obj, self.attr, self.old_value)
            del self.old_value
        else:
            delattr(self.obj, self.attr)
