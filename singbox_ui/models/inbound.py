"""
Inbound listener definitions as persisted to the remote configuration.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Tuple

TUN_INTERFACE_NAME = "tun0"
TUN_ROUTE_ADDRESSES = ('0.0.0.0/1', '128.0.0.0/1', '::/1', '8000::/1')


@dataclass(frozen=True)
class InboundSpec:
    """Base class for inbound listeners."""
    type: ClassVar[str] = ""

    tag: str
    sniff: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the sing-box inbound object."""
        raise NotImplementedError


@dataclass(frozen=True)
class TunInbound(InboundSpec):
    """Virtual interface capturing system-wide traffic."""
    type: ClassVar[str] = "tun"

    interface_name: str = TUN_INTERFACE_NAME
    auto_route: bool = True
    auto_redirect: bool = True
    strict_route: bool = True
    stack: str = "mixed"
    route_address: Tuple[str, ...] = TUN_ROUTE_ADDRESSES
    sniff_override_destination: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'tag': self.tag,
            'interface_name': self.interface_name,
            'auto_route': self.auto_route,
            'auto_redirect': self.auto_redirect,
            'strict_route': self.strict_route,
            'stack': self.stack,
            'route_address': list(self.route_address),
            'sniff': self.sniff,
            'sniff_override_destination': self.sniff_override_destination
        }


@dataclass(frozen=True)
class _ListeningInbound(InboundSpec):
    listen: str = "127.0.0.1"
    listen_port: int = 0

    @property
    def endpoint(self) -> str:
        return f"{self.listen}:{self.listen_port}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'tag': self.tag,
            'listen': self.listen,
            'listen_port': self.listen_port,
            'sniff': self.sniff
        }


@dataclass(frozen=True)
class TProxyInbound(_ListeningInbound):
    """Transparent proxy listener for TCP and UDP."""
    type: ClassVar[str] = "tproxy"

    network: str = "tcp udp"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['network'] = self.network
        return data


@dataclass(frozen=True)
class RedirectInbound(_ListeningInbound):
    """NAT redirect listener (TCP only)."""
    type: ClassVar[str] = "redirect"


@dataclass(frozen=True)
class MixedInbound(_ListeningInbound):
    """HTTP + SOCKS5 listener."""
    type: ClassVar[str] = "mixed"


def inbounds_to_payload(inbounds) -> list:
    """Serialize a sequence of inbounds for ``PUT /config/inbounds``."""
    return [inbound.to_dict() for inbound in inbounds]
