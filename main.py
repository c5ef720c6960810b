from dataclasses import dataclass

from rich.pretty import pprint

from commandeer import *

__prog__ = "greeter"


@dataclass
class GreetOptions:
    loud: bool = option(False, help="shout the greeting")
    greeting: str = option("hello", help="word to greet with")


@dataclass
class AppOptions:
    debug: bool = option(False, help="print the command table before running")


@command(arguments=[Argument("name", help="who to greet")], options=GreetOptions())
def greet(arguments: Arguments, options: GreetOptions):
    """
    greet someone by name

    Prints the greeting followed by the given name, in capitals with -loud.
    """
    message = "%s, %s" % (options.greeting, arguments.string("name"))
    print(message.upper() if options.loud else message)


@command(arguments=NO_ARGUMENTS)
def version():
    """print the version"""
    print(__version__)


def before(options: AppOptions):
    if options.debug:
        pprint(COMMANDS)


COMMANDS = [greet, version]


if __name__ == '__main__':
    main(COMMANDS, options=GlobalOptions(AppOptions(), before=before), colorful=True)
