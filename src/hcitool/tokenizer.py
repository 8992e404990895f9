"""Split raw process arguments into a command name and option parameters."""

from __future__ import annotations

from typing import List, Sequence, Tuple

from .const import OPTION_PREFIX
from .exception import UnknownCommand
from .options import Parameter


def is_option(token: str) -> bool:
    return token.startswith(OPTION_PREFIX) and len(token) > len(OPTION_PREFIX)


def tokenize(arguments: Sequence[str]) -> Tuple[str, List[Parameter]]:
    """Return the lower-cased command name and the parameters that follow.

    ``--name value`` yields ``Parameter("name", "value")``; an option with no
    value, or one followed by another option, yields ``Parameter("name")``.
    Repeated options are all kept in encounter order and unknown names pass
    through untouched. A value with no option in front of it is kept with an
    empty option name so the builder can reject it.
    """
    if not arguments:
        raise UnknownCommand("")

    command_name = arguments[0].lower()
    parameters: List[Parameter] = []
    index = 1
    while index < len(arguments):
        token = arguments[index]
        if not is_option(token):
            parameters.append(Parameter(option="", value=token))
            index += 1
            continue

        name = token[len(OPTION_PREFIX):].lower()
        following = index + 1
        if following < len(arguments) and not is_option(arguments[following]):
            parameters.append(Parameter(option=name, value=arguments[following]))
            index += 2
        else:
            parameters.append(Parameter(option=name))
            index += 1

    return command_name, parameters
