"""Network interface byte counters read from the kernel's statistics files."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Mapping

logger = logging.getLogger(__name__)

DEFAULT_INTERFACE = "eth0"
INTERFACE_ENV = "MSP_ETH_INTERFACE_NAME"
SYS_CLASS_NET = "/sys/class/net/"

_interface: str | None = None


def detect_interface(env: Mapping[str, str] | None = None) -> str:
    """Find the interface of the default IPv4 route, else the configured or default one."""
    if env is None:
        env = os.environ
    interface = env.get(INTERFACE_ENV) or DEFAULT_INTERFACE
    command = ["ip", "-o", "-4", "route", "show", "to", "default"]
    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError:
        return interface
    if result.returncode != 0:
        return interface
    output = result.stdout or ""
    parts = output.strip().split(" ")
    if len(parts) < 5:
        logger.warning('invalid result from "ip -o -4 route show to default": %s', output)
        return interface
    return parts[4].strip()


def statistics_folder(interface: str) -> str:
    return SYS_CLASS_NET + interface + "/statistics/"


def read_number_from_file(name: str) -> float:
    """Read a number from a file; raises OSError or ValueError."""
    with open(name, encoding="utf-8") as handle:
        return float(handle.read().strip())


def _current_folder() -> str:
    global _interface
    if _interface is None:
        _interface = detect_interface()
    return statistics_folder(_interface)


def _read_counter(name: str) -> float:
    try:
        return read_number_from_file(_current_folder() + name)
    except (OSError, ValueError):
        return 0.0


def current_network_stat_input_byte() -> float:
    """Bytes received on the monitored interface, 0 if unreadable."""
    return _read_counter("rx_bytes")


def current_network_stat_output_byte() -> float:
    """Bytes sent on the monitored interface, 0 if unreadable."""
    return _read_counter("tx_bytes")