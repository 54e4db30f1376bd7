"""
Inbound synthesis from the operator's high-level choices.

The inbound section of the remote configuration is never edited by
hand; it is always regenerated from an AppConfig by ``synthesize``.
"""

from typing import List

from ..models.app_config import AppConfig, ProxyMode
from ..models.inbound import (
    InboundSpec, MixedInbound, RedirectInbound, TProxyInbound, TunInbound
)

LOOPBACK_ADDRESS = '127.0.0.1'


def synthesize(cfg: AppConfig) -> List[InboundSpec]:
    """
    Derive the inbound listeners for a configuration.

    Returns exactly one mode-specific inbound followed by one mixed
    inbound. In TUN mode the mixed inbound is always loopback-only;
    in the other modes every listener binds according to ``lan_proxy``.
    """
    bind = cfg.listen_address()

    if cfg.proxy_mode == ProxyMode.TUN:
        return [
            TunInbound(tag='tun-in'),
            MixedInbound(tag='mixed-in', listen=LOOPBACK_ADDRESS, listen_port=cfg.mixed_port),
        ]

    mixed = MixedInbound(tag='mixed-in', listen=bind, listen_port=cfg.mixed_port)

    if cfg.proxy_mode == ProxyMode.TPROXY:
        return [
            TProxyInbound(tag='tproxy-in', listen=bind, listen_port=cfg.tproxy_port),
            mixed,
        ]

    if cfg.proxy_mode == ProxyMode.REDIR:
        return [
            RedirectInbound(tag='redir-in', listen=bind, listen_port=cfg.redir_port),
            mixed,
        ]

    raise ValueError(f"Unsupported proxy mode: {cfg.proxy_mode}")
