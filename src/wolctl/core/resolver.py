"""Work out which MAC, broadcast destination and interface a wake request uses."""

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional

from wolctl.errors import NotFoundError
from wolctl.store.aliases import Alias, AliasStore

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST_IP = "255.255.255.255"
DEFAULT_PORT = 9


@dataclass(frozen=True)
class WakeOptions:
    """Command-line overrides for a wake request."""

    # Overrides the interface stored on an alias when non-empty.
    interface: str = ""
    broadcast_ip: str = DEFAULT_BROADCAST_IP
    port: int = DEFAULT_PORT

    def merged(self, **overrides: Any) -> "WakeOptions":
        """Return a copy with every override that is not None applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class ResolvedTarget:
    """Everything needed to send one magic packet."""

    mac: str
    destination: str
    iface: str


def lookup_alias(store: AliasStore, target: str) -> Optional[Alias]:
    """Return the alias named ``target``, or None if there is none."""
    try:
        return store.get(target)
    except NotFoundError:
        return None


def resolve_target(target: str, store: AliasStore, options: WakeOptions) -> ResolvedTarget:
    """
    Resolve a wake target against the alias store.

    A target that names an alias uses the alias's MAC and interface; anything
    else is taken to be a literal MAC address. A non-empty
    ``options.interface`` always wins over the alias's interface.

    Args:
        target: Alias name or MAC address
        store: Open alias store
        options: Command-line overrides

    Returns:
        ResolvedTarget with the final MAC, "ip:port" destination and interface

    Raises:
        StorageError: If the store lookup fails for any reason besides a miss
    """
    alias = lookup_alias(store, target)
    if alias is not None:
        logger.debug("Target %s is an alias for %s", target, alias.mac)
        mac, iface = alias.mac, alias.iface
    else:
        logger.debug("Target %s is not an alias, using it as a MAC address", target)
        mac, iface = target, ""

    if options.interface:
        iface = options.interface

    destination = f"{options.broadcast_ip}:{options.port}"
    return ResolvedTarget(mac=mac, destination=destination, iface=iface)
