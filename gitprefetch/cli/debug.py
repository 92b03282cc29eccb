import click

from .utils.logging import configure_logging


def _set_debug(ctx, param, value: bool):
    """Record the flag on the root context and switch the log level."""
    root_ctx = ctx.find_root()
    root_ctx.ensure_object(dict)
    root_ctx.obj["DEBUG"] = bool(value)

    configure_logging(root_ctx.obj["DEBUG"])
    return root_ctx.obj["DEBUG"]


def debug_option(cmd):
    """Add an eager --debug/--no-debug flag so logging is set up before anything runs."""
    return click.option(
        "--debug/--no-debug",
        is_eager=True,
        expose_value=False,
        callback=_set_debug,
        help="Log every git and nix command that is run.",
    )(cmd)
