"""
High-level operator configuration for the proxy process.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

DEFAULT_MIXED_PORT = 7890
DEFAULT_REDIR_PORT = 7892
DEFAULT_TPROXY_PORT = 7893


class ProxyMode(Enum):
    """Traffic interception mechanism."""
    TUN = "tun"
    TPROXY = "tproxy"
    REDIR = "redir"


MODE_DESCRIPTIONS = {
    ProxyMode.TUN: "Virtual interface captures all TCP/UDP traffic (recommended)",
    ProxyMode.TPROXY: "iptables/nftables TPROXY, TCP/UDP, suited to side-router setups",
    ProxyMode.REDIR: "iptables NAT REDIRECT, TCP only, widest compatibility",
}


@dataclass
class AppConfig:
    """
    Operator choices from which the inbound listeners are derived.

    Attributes:
        proxy_mode: Interception mechanism
        mixed_port: HTTP+SOCKS5 port, active in every mode
        tproxy_port: TPROXY port, active only in tproxy mode
        redir_port: Redirect port, active only in redir mode
        lan_proxy: Whether listeners are exposed to the LAN
        auto_start: Whether the manager starts the proxy on boot
        extra: Fields the manager returned that this client does not model;
               sent back unchanged on save
    """
    proxy_mode: ProxyMode = ProxyMode.TUN
    mixed_port: int = DEFAULT_MIXED_PORT
    tproxy_port: int = DEFAULT_TPROXY_PORT
    redir_port: int = DEFAULT_REDIR_PORT
    lan_proxy: bool = False
    auto_start: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate the configuration after initialization."""
        if isinstance(self.proxy_mode, str):
            self.proxy_mode = self._parse_mode(self.proxy_mode)
        self._validate()

    def _validate(self):
        for name in ('mixed_port', 'tproxy_port', 'redir_port'):
            port = getattr(self, name)
            if isinstance(port, bool) or not isinstance(port, int):
                raise ValueError(f"Invalid {name}: {port!r}. Must be an integer")
            if not (1 <= port <= 65535):
                raise ValueError(f"Invalid {name}: {port}. Must be between 1 and 65535")

    @staticmethod
    def _parse_mode(value: str) -> ProxyMode:
        try:
            return ProxyMode(value)
        except ValueError:
            valid = sorted(m.value for m in ProxyMode)
            raise ValueError(f"Invalid proxy mode: {value!r}. Must be one of {valid}")

    @property
    def active_port(self) -> int:
        """Port of the mode-specific listener (TUN has none; returns mixed_port)."""
        if self.proxy_mode == ProxyMode.TPROXY:
            return self.tproxy_port
        if self.proxy_mode == ProxyMode.REDIR:
            return self.redir_port
        return self.mixed_port

    def listen_address(self) -> str:
        """Bind address for LAN-governed listeners."""
        return '0.0.0.0' if self.lan_proxy else '127.0.0.1'

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data.update({
            'proxy_mode': self.proxy_mode.value,
            'mixed_port': self.mixed_port,
            'tproxy_port': self.tproxy_port,
            'redir_port': self.redir_port,
            'lan_proxy': self.lan_proxy,
            'auto_start': self.auto_start
        })
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppConfig':
        """
        Create a configuration from a ``GET /app-config`` payload or a form.

        Zero or missing ports fall back to the defaults. Form strings are
        accepted: digit-only ports and true/false style flags.

        Raises:
            ValueError: If a port or flag cannot be interpreted
        """
        known_keys = {
            'proxy_mode', 'mixed_port', 'tproxy_port', 'redir_port',
            'lan_proxy', 'auto_start'
        }
        return cls(
            proxy_mode=data.get('proxy_mode') or ProxyMode.TUN.value,
            mixed_port=_parse_port(data.get('mixed_port')) or DEFAULT_MIXED_PORT,
            tproxy_port=_parse_port(data.get('tproxy_port')) or DEFAULT_TPROXY_PORT,
            redir_port=_parse_port(data.get('redir_port')) or DEFAULT_REDIR_PORT,
            lan_proxy=_parse_flag('lan_proxy', data.get('lan_proxy')),
            auto_start=_parse_flag('auto_start', data.get('auto_start')),
            extra={k: v for k, v in data.items() if k not in known_keys}
        )

    def get_mode_description(self) -> str:
        return MODE_DESCRIPTIONS[self.proxy_mode]


_TRUE_STRINGS = {'true', '1', 'yes', 'on'}
_FALSE_STRINGS = {'false', '0', 'no', 'off', ''}


def _parse_port(value: Any) -> Any:
    """Accept digit-only strings from form fields; anything else is validated as given."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


def _parse_flag(name: str, value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid {name}: {value!r}. Must be true or false")
