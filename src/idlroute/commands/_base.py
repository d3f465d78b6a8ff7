"""Custom Click base classes with --examples support.

When ``--examples`` is passed, the command prints usage examples and
exits.  This keeps ``--help`` concise while making examples available on
demand.  Commands that read ``idlroute.toml`` also declare the settings
they use, so ``--examples`` can show where each value may come from.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click

from idlroute.config.discovery import CONFIG_FILENAME, env_var_for


def settings_hint(keys: Sequence[str]) -> str:
    """Describe dotted setting keys as TOML entries plus their env vars.

    ``service.idl`` becomes ``[service] idl`` (``IDLROUTE_SERVICE__IDL``).
    """
    lines = [f"Settings ({CONFIG_FILENAME} or environment):"]
    for key in keys:
        section, _, name = key.partition(".")
        lines.append(f"  [{section}] {name:<20} {env_var_for(key)}")
    return "\n".join(lines)


def _add_examples_option(
    cmd: click.Command, examples: str, settings: Sequence[str] = ()
) -> None:
    """Attach an eager ``--examples`` flag to a Click command or group."""

    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        if settings:
            click.echo()
            click.echo(settings_hint(settings))
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class IdlCommand(click.Command):
    """Click Command with ``--examples`` and the settings it reads."""

    def __init__(
        self,
        *args: Any,
        examples: str | None = None,
        settings: Sequence[str] = (),
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        self.settings = tuple(settings)
        if examples:
            _add_examples_option(self, examples, self.settings)


class IdlGroup(click.Group):
    """Click Group subclass that supports an ``--examples`` flag.

    Sets ``command_class = IdlCommand`` so subcommands accept ``examples``
    and ``settings`` without an explicit ``cls=``.
    """

    command_class = IdlCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
