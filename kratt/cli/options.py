"""Click parameter types for kratt's command-line options."""

from typing import Any

import click

from kratt.utils.validation import is_valid_branch_name, parse_duration, split_command


class DurationType(click.ParamType):
    """A duration such as ``30m``, ``90s``, ``1h30m`` or plain seconds."""

    name = "duration"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> float:
        if isinstance(value, (int, float)):
            value = str(value)
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class CommandType(click.ParamType):
    """A comma-separated argument vector, e.g. ``go,test,./...``."""

    name = "command"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> list[str]:
        if isinstance(value, list):
            return value
        try:
            return split_command(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


class BranchNameType(click.ParamType):
    """A branch name git would accept for a new branch."""

    name = "branch"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> str:
        if not is_valid_branch_name(value):
            self.fail(f"invalid branch name {value!r}: must not contain invalid characters", param, ctx)
        return value


DURATION = DurationType()
COMMAND = CommandType()
BRANCH_NAME = BranchNameType()
POSITIVE_INT = click.IntRange(min=1)
