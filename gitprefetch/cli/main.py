"""gitprefetch CLI"""

import signal
import sys
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError

from gitprefetch import __version__
from gitprefetch.config import PrefetchConfig
from gitprefetch.errors import PrefetchError, UsageError
from gitprefetch.prefetch import build, prefetch, report

from .debug import debug_option
from .utils.logging import configure_logging, logger, quiet_mode


def _exit_on_signal(signum, frame):
    # Turn termination into SystemExit so that scratch directories and
    # capture files are cleaned up by their context managers.
    sys.exit(128 + signum)


def _tri_state(enabled: bool, disabled: bool, flag: str):
    """None when neither flag is given, so lower configuration layers apply."""
    if enabled and disabled:
        negated = "--no-" + flag[2:]
        raise click.UsageError(f"{flag} and {negated} are mutually exclusive")
    if enabled:
        return True
    if disabled:
        return False
    return None


@contextmanager
def cleanup_on_signals():
    handled = [signal.SIGTERM, signal.SIGHUP]
    previous = {}
    for signum in handled:
        try:
            previous[signum] = signal.signal(signum, _exit_on_signal)
        except ValueError:
            # Not the main thread; nothing to install.
            pass
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)


@click.command(
    name="git-prefetch",
    context_settings=dict(help_option_names=["-h", "--help"]),
)
@click.version_option(__version__, prog_name="gitprefetch")
@debug_option
@click.argument("url_arg", metavar="URL", required=False)
@click.argument("rev_arg", metavar="REVISION", required=False)
@click.argument("hash_arg", metavar="EXPECTED-HASH", required=False)
@click.option(
    "--out",
    type=click.Path(path_type=Path),
    default=None,
    help="Path where the output would be stored.",
)
@click.option("--url", default=None, help="Any url understood by 'git clone'.")
@click.option(
    "--rev",
    default=None,
    help="Any sha1 or references (such as refs/heads/master).",
)
@click.option("--hash", "expected_hash", default=None, help="Expected hash.")
@click.option("--branch-name", default=None, help="Branch name to check out into.")
@click.option(
    "--deepClone",
    "deep_clone",
    is_flag=True,
    default=False,
    help="Clone the entire repository.",
)
@click.option(
    "--no-deepClone",
    "no_deep_clone",
    is_flag=True,
    default=False,
    help="Make a shallow clone of just the required ref.",
)
@click.option(
    "--leave-dotGit",
    "leave_dot_git",
    is_flag=True,
    default=False,
    help="Keep the .git directories.",
)
@click.option(
    "--no-leave-dotGit",
    "no_leave_dot_git",
    is_flag=True,
    default=False,
    help="Remove the .git directories.",
)
@click.option(
    "--fetch-submodules",
    is_flag=True,
    default=False,
    help="Fetch submodules.",
)
@click.option(
    "--builder",
    is_flag=True,
    default=False,
    help="Clone as fetchgit does, but url, rev, and out option are mandatory.",
)
@click.option(
    "--quiet",
    is_flag=True,
    default=False,
    help="Only print the final json summary.",
)
@click.pass_context
def cli(
    ctx,
    url_arg,
    rev_arg,
    hash_arg,
    out,
    url,
    rev,
    expected_hash,
    branch_name,
    deep_clone,
    no_deep_clone,
    leave_dot_git,
    no_leave_dot_git,
    fetch_submodules,
    builder,
    quiet,
):
    """
    Fetch a git revision reproducibly and add it to the Nix store.

    Prints a JSON record with the resolved revision, its commit date and the
    content hash of the checkout.
    """
    ctx.ensure_object(dict)
    if "DEBUG" not in ctx.obj:
        configure_logging(False)

    url = url or url_arg
    rev = rev or rev_arg
    expected_hash = expected_hash or hash_arg

    deep = _tri_state(deep_clone, no_deep_clone, "--deepClone")
    keep_dot_git = _tri_state(leave_dot_git, no_leave_dot_git, "--leave-dotGit")

    try:
        config = PrefetchConfig.from_sources(
            out=out,
            branch_name=branch_name,
            deep_clone=deep,
            leave_dot_git=keep_dot_git,
            fetch_submodules=fetch_submodules or None,
            builder=builder or None,
            quiet=quiet or None,
        )
    except ValidationError as e:
        raise click.UsageError(str(e))

    if not url:
        raise click.UsageError("Missing argument 'URL'.")
    if config.builder and not (config.out and rev):
        raise click.UsageError("--builder requires --out, --url and --rev.")

    with cleanup_on_signals(), quiet_mode(config.quiet):
        try:
            if config.builder:
                build(url, rev, config)
                return
            result = prefetch(url, rev, expected_hash, config)
        except UsageError as e:
            raise click.UsageError(str(e))
        except PrefetchError as e:
            logger.error(str(e))
            sys.exit(1)
        report(result)

    click.echo(result.to_json())
    if config.print_path and result.path:
        click.echo(result.path)


if __name__ == "__main__":
    cli(obj={})
