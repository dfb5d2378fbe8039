import enum

from rich.pretty import pprint

from quiver import *


class Level(enum.Enum):
    DEBUG = 10
    INFO = 20
    ERROR = 40


tool = Command("pack", "build and run packages")
level = tool.add_named("--level", Choice("level", Level, descr="log level", default=Level.INFO))

subcommands = tool.add_group(CommandGroup())

build = subcommands.add_command(Command("build", "compile sources into a package"))
source = build.add_positional(Value("source", descr="directory holding the sources"))
jobs = build.add_named("--jobs", Value("jobs", type=int, default=1, descr="parallel compile jobs"))
targets = build.add_named("--targets", Listing("targets", descr="comma-separated target names"))
verbose = build.add_named("--verbose", Flag("verbose", "print every compiled file"))

run = subcommands.add_command(Command("run", "run a built package"))


if __name__ == '__main__':
    invoke(tool)
    pprint(tool)
