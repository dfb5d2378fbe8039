"""
quiver: declarative command-line parsing with nested subcommands.

Build a Command from option values (Flag, Value, Choice, Listing), attach an
optional CommandGroup of subcommands, then hand a prompt to invoke():

    >>> tool = Command("tool")
    >>> file = tool.add_positional(Value("file"))
    >>> invoke(tool, "notes.txt", shell=False)
    1
    >>> file.value
    'notes.txt'
"""
__title__ = "quiver"
__license__ = "MIT"
__version__ = "0.0.0"

from collections import namedtuple

from .values import *
from .commands import *
from .faults import *
from . import values, commands, faults

VersionInfo = namedtuple("VersionInfo", ("major", "minor", "micro", "releaselevel", "serial"))

version_info = VersionInfo(*map(int, __version__.split(".")), "final", 0)

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info",
)
__all__ += values.__all__
__all__ += commands.__all__
__all__ += faults.__all__

del namedtuple
