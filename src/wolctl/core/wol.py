"""Wake-on-LAN functionality."""

import logging

import netifaces
from wakeonlan import send_magic_packet

from wolctl.errors import TransmissionError

logger = logging.getLogger(__name__)


def interface_address(name: str) -> str:
    """
    Return the first IPv4 address assigned to a network interface.

    Raises:
        TransmissionError: If the interface is unknown or has no IPv4 address
    """
    try:
        addresses = netifaces.ifaddresses(name)
    except ValueError as exc:
        raise TransmissionError(f"unknown network interface '{name}'") from exc

    for addr in addresses.get(netifaces.AF_INET, []):
        if addr.get("addr"):
            return str(addr["addr"])
    raise TransmissionError(f"network interface '{name}' has no IPv4 address")


def _split_destination(destination: str) -> tuple[str, int]:
    host, sep, port = destination.rpartition(":")
    if not sep or not host:
        raise TransmissionError(f"invalid destination '{destination}' (expected ip:port)")
    try:
        return host, int(port)
    except ValueError:
        raise TransmissionError(f"invalid UDP port '{port}'") from None


def wake(mac_address: str, destination: str = "255.255.255.255:9", interface: str = "") -> bool:
    """
    Send a Wake-on-LAN magic packet to wake a remote machine.

    Args:
        mac_address: MAC address of the target machine (e.g., "AA:BB:CC:DD:EE:FF")
        destination: Broadcast address and UDP port as "ip:port"
        interface: Name of the interface to send through ("" for the OS default)

    Returns:
        True if packet was sent successfully

    Raises:
        TransmissionError: If the MAC is malformed, the interface cannot be
            used, or the socket send fails
    """
    ip_address, port = _split_destination(destination)
    bind_address = interface_address(interface) if interface else None

    logger.info(
        "Sending WOL magic packet to %s via %s:%d (interface: %s)",
        mac_address,
        ip_address,
        port,
        interface or "default",
    )
    try:
        send_magic_packet(mac_address, ip_address=ip_address, port=port, interface=bind_address)
    except (ValueError, OSError) as exc:
        raise TransmissionError(f"failed to send magic packet to {mac_address}: {exc}") from exc
    logger.debug("WOL packet sent successfully")
    return True
