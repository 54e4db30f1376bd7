"""
Helpers for editing the outbound list.

Outbounds are kept as plain dictionaries because the client edits them
as free-form JSON; only the fields needed for list maintenance are read.
"""

import copy
from typing import Any, Dict, List, Tuple

SYSTEM_OUTBOUND_TYPES = frozenset({'direct', 'block', 'dns-out', 'selector', 'urltest', 'dns'})
GROUP_OUTBOUND_TYPES = frozenset({'selector', 'urltest'})

OUTBOUND_TYPES = (
    'vless', 'vmess', 'trojan', 'shadowsocks', 'hysteria2',
    'tuic', 'wireguard', 'socks', 'http', 'anytls',
)

Outbound = Dict[str, Any]


def is_system_outbound(outbound: Outbound) -> bool:
    return outbound.get('type') in SYSTEM_OUTBOUND_TYPES


def split_outbounds(outbounds: List[Outbound]) -> Tuple[List[Outbound], List[Outbound]]:
    """Split into (system outbounds, proxy nodes), preserving order."""
    system = [o for o in outbounds if is_system_outbound(o)]
    proxies = [o for o in outbounds if not is_system_outbound(o)]
    return system, proxies


def remove_outbound(outbounds: List[Outbound], tag: str) -> List[Outbound]:
    """
    Remove an outbound and every group reference to it.

    Returns a new list; the input is not modified.
    """
    result = []
    for outbound in outbounds:
        if outbound.get('tag') == tag:
            continue
        outbound = copy.deepcopy(outbound)
        if isinstance(outbound.get('outbounds'), list):
            outbound['outbounds'] = [t for t in outbound['outbounds'] if t != tag]
        result.append(outbound)
    return result


def add_outbound(outbounds: List[Outbound], new_outbound: Outbound) -> List[Outbound]:
    """
    Append an outbound and list it first in every selector/urltest group.

    Raises:
        ValueError: If the outbound has no tag or the tag is already used
    """
    tag = new_outbound.get('tag')
    if not tag:
        raise ValueError("Outbound must have a tag")
    if any(o.get('tag') == tag for o in outbounds):
        raise ValueError(f"Outbound tag already exists: {tag}")

    result = []
    for outbound in list(outbounds) + [new_outbound]:
        outbound = copy.deepcopy(outbound)
        if outbound.get('type') in GROUP_OUTBOUND_TYPES:
            members = list(outbound.get('outbounds') or [])
            if tag not in members:
                members.insert(0, tag)
            outbound['outbounds'] = members
        result.append(outbound)
    return result


def outbound_template(outbound_type: str) -> Outbound:
    """Starting point for a new node of the given protocol."""
    templates = {
        'vless': {'server_port': 443, 'uuid': '', 'tls': {'enabled': True}},
        'vmess': {'server_port': 443, 'uuid': '', 'security': 'auto'},
        'trojan': {'server_port': 443, 'password': '', 'tls': {'enabled': True}},
        'shadowsocks': {'server_port': 8388, 'method': 'aes-128-gcm', 'password': ''},
        'hysteria2': {'server_port': 443, 'password': '', 'tls': {'enabled': True}},
    }
    template = {'type': outbound_type, 'tag': 'new-node'}
    if outbound_type in templates:
        template['server'] = ''
        template.update(copy.deepcopy(templates[outbound_type]))
    return template
