"""Connection configuration for napalm-gigacore."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_IPV4_RE: re.Pattern[str] = re.compile(
    r"^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
    r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$"
)


@dataclass(frozen=True)
class GigaCoreConfig:
    """User-supplied connection settings.

    Attributes:
        host: Address entered by hand (IP or hostname).
        password: Device password; ``""`` when authentication is disabled.
        gen1: ``True`` for legacy devices (GigaCore10/12/14R/16Xt/16RFO/26i)
            that only speak the polling protocol.
        bonjour_host: ``"<ip>:<port>"`` as produced by an external mDNS
            browser.  Takes precedence over :attr:`host` when set.
    """

    host: str = ""
    password: str = ""
    gen1: bool = False
    bonjour_host: str = ""

    def host_address(self) -> str | None:
        """Return the address to connect to, or ``None`` if there is none.

        A discovered ``bonjour_host`` must carry a dotted IPv4 address;
        anything else is rejected with a warning.
        """
        if self.bonjour_host:
            ip = self.bonjour_host.split(":")[0]
            if _IPV4_RE.match(ip):
                return ip
            logger.warning("IP %s has unexpected format", ip)
            return None
        if self.host:
            return self.host
        return None
