"""
Command line reconstruction for the generated-file header comment.
"""

from pathlib import Path

import click

PROGRAM_NAME = "api_schema_to_code"


def _format_value(value) -> str:
    # Existing files are shown by name so headers do not leak local directories
    if isinstance(value, (str, Path)):
        path = Path(str(value))
        return path.name if path.exists() else str(value)
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def _is_default(option: click.Option, value) -> bool:
    default = option.default
    if isinstance(value, tuple):
        return isinstance(default, (list, tuple)) and tuple(default) == value
    return value == default


def _argument_tokens(value) -> list[str]:
    values = value if isinstance(value, tuple) else (value,)
    return [_format_value(item) for item in values]


def _option_tokens(option: click.Option, value) -> list[str]:
    flag = option.opts[0] if option.opts else f"--{option.name}"
    if option.is_flag:
        return [flag]
    tokens = []
    for item in value if isinstance(value, tuple) else (value,):
        tokens.extend([flag, _format_value(item)])
    return tokens


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Rebuild the invocation of click_command from the active click context.

    Positional arguments come first, then every option whose value differs
    from its default, in declaration order.

    Args:
        click_command: The command whose parameters are introspected

    Returns:
        The command line, or the bare program name outside a click context
    """
    try:
        params = click.get_current_context().params
    except RuntimeError:
        return PROGRAM_NAME

    arguments: list[str] = []
    options: list[str] = []
    for param in click_command.params:
        value = params.get(param.name)
        if value is None or value == () or value is False:
            continue
        if isinstance(param, click.Argument):
            arguments.extend(_argument_tokens(value))
        elif isinstance(param, click.Option) and not _is_default(param, value):
            options.extend(_option_tokens(param, value))

    return " ".join([PROGRAM_NAME] + arguments + options)
