import datetime

from rich.pretty import pprint

from optopus import *

__prog__ = "optopus-demo"


def setup(parser):
    parser.version("optopus-demo 0.0.0")
    parser.usage("[options] FILE...")
    parser.synopsis("Shows what the parser makes of a commandline.")
    parser.opt("name", "Who to greet.", type="string", default="world", alt="who")
    parser.opt("count", "How many times", default=1, permitted=range(1, 11))
    parser.opt("since", "Only things newer than this date", type="date", default=datetime.date.today())
    parser.opt("tags", "Free-form tags", type="strings")
    parser.opt("log", "Log to a file (optional name)", type="stringflag", default="output.log")
    parser.opt("color", "Colorize output", default=True)
    parser.opt("quiet", "Say less")
    parser.opt("loud", "Say more")
    parser.conflicts("quiet", "loud")


if __name__ == '__main__':
    values = options(setup, inexact_match=True)
    if values["count"] > 5 and values["quiet"]:
        values.parser.die("count", "cannot exceed 5 when quiet")
    pprint(dict(values))
    pprint(values.leftovers)
