"""Command-line interface for wolctl."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from wolctl import __version__
from wolctl.core.resolver import DEFAULT_BROADCAST_IP, DEFAULT_PORT, WakeOptions, resolve_target
from wolctl.errors import ValidationError, WolError
from wolctl.store.aliases import AliasStore

DEFAULT_DB = Path.home() / ".config" / "wolctl" / "aliases.yaml"

_PORT = click.IntRange(0, 65535)
_FALLBACK_KEY = "wolctl.fallback_target"

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


class WolGroup(click.Group):
    """
    Command group that treats an unknown first token as a wake target and
    reports wolctl errors in one place.
    """

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[Optional[str], Optional[click.Command], list[str]]:
        name = args[0]
        if self.get_command(ctx, name.lower()) is None:
            # Logging is not configured yet; wake reports the fallback.
            ctx.meta[_FALLBACK_KEY] = name
            return "wake", self.get_command(ctx, "wake"), args
        return super().resolve_command(ctx, [name.lower(), *args[1:]])

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except ValidationError as exc:
            raise click.UsageError(str(exc), ctx=ctx) from exc
        except WolError as exc:
            click.echo(f"Error: {exc}", err=True)
            ctx.exit(1)


def _store(ctx: click.Context) -> AliasStore:
    store: AliasStore = ctx.obj["store"]
    return store


# ── Root group ────────────────────────────────────────────────────────────────


@click.group(cls=WolGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="wolctl")
@click.option(
    "--db",
    default=str(DEFAULT_DB),
    envvar="WOLCTL_DB",
    show_default=True,
    help="Path to the alias database",
)
@click.option(
    "--interface",
    "-i",
    default="",
    help="Interface to broadcast on (overrides the alias's interface)",
)
@click.option(
    "--bcast", "-b", default=DEFAULT_BROADCAST_IP, show_default=True, help="Broadcast IP address"
)
@click.option("--port", "-p", type=_PORT, default=DEFAULT_PORT, show_default=True, help="UDP port")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(
    ctx: click.Context, db: str, interface: str, bcast: str, port: int, verbose: bool
) -> None:
    """wolctl: wake machines on the LAN by MAC address or by alias.

    Anything that is not a command is taken as a wake target, so
    `wolctl desktop` is the same as `wolctl wake desktop`.
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["options"] = WakeOptions(interface=interface, broadcast_ip=bcast, port=port)
    ctx.obj["store"] = ctx.with_resource(AliasStore.open(Path(db)))


# ── alias command ─────────────────────────────────────────────────────────────


@main.command("alias")
@click.argument("name")
@click.argument("mac")
@click.argument("iface", required=False, default="")
@click.pass_context
def alias_cmd(ctx: click.Context, name: str, mac: str, iface: str) -> None:
    """Add or overwrite the alias NAME for MAC, optionally bound to IFACE."""
    if not name or not mac:
        raise ValidationError("alias command requires a <name> and a <mac>")

    alias = _store(ctx).add(name, mac, iface)
    on = f" on {alias.iface}" if alias.iface else ""
    click.echo(f"Alias '{alias.name}' → {alias.mac}{on}")


# ── list command ──────────────────────────────────────────────────────────────


@main.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List all aliases, sorted by name."""
    aliases = _store(ctx).list_aliases()
    if not aliases:
        click.echo('No aliases found! Add one with "wolctl alias <name> <mac>"')
        return
    click.echo(f"{'NAME':<20} {'MAC':<20} {'INTERFACE'}")
    click.echo("─" * 52)
    for a in aliases.values():
        click.echo(f"{a.name:<20} {a.mac:<20} {a.iface or '-'}")


# ── remove command ────────────────────────────────────────────────────────────


@main.command("remove")
@click.argument("name")
@click.pass_context
def remove_cmd(ctx: click.Context, name: str) -> None:
    """Delete the alias NAME."""
    if not name:
        raise ValidationError("remove command requires a <name> of an alias")

    _store(ctx).delete(name)
    click.echo(f"Removed alias '{name}'")


# ── wake command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("target", nargs=-1)
@click.option("--interface", "-i", default=None, help="Interface to broadcast on")
@click.option("--bcast", "-b", default=None, help="Broadcast IP address")
@click.option("--port", "-p", type=_PORT, default=None, help="UDP port")
@click.pass_context
def wake(
    ctx: click.Context,
    target: tuple[str, ...],
    interface: Optional[str],
    bcast: Optional[str],
    port: Optional[int],
) -> None:
    """Send a magic packet to TARGET, an alias name or a MAC address."""
    fallback = ctx.meta.get(_FALLBACK_KEY)
    if fallback is not None:
        logger.debug("'%s' is not a command, treating it as a wake target", fallback)
    if not target or not target[0]:
        raise ValidationError("no alias or mac address specified to wake")
    if len(target) > 1:
        logger.debug("Ignoring extra arguments after wake target: %s", " ".join(target[1:]))

    options: WakeOptions = ctx.obj["options"].merged(
        interface=interface, broadcast_ip=bcast, port=port
    )
    resolved = resolve_target(target[0], _store(ctx), options)

    from wolctl.core.wol import wake as do_wake

    do_wake(resolved.mac, resolved.destination, resolved.iface)
    click.echo(f"Magic packet sent successfully to {resolved.mac}")


if __name__ == "__main__":
    main()
