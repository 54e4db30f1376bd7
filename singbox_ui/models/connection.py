"""
Connection model mirrored from the manager's connection list.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from .timeutil import parse_optional_timestamp


@dataclass(frozen=True)
class ConnectionMetadata:
    """
    Flow metadata for a connection.

    Any field may be missing in the remote payload; missing values are None.
    """
    network: Optional[str] = None
    source_ip: Optional[str] = None
    source_port: Optional[str] = None
    destination_ip: Optional[str] = None
    destination_port: Optional[str] = None
    host: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ConnectionMetadata':
        data = data or {}
        return cls(
            network=_optional_str(data.get('network')),
            source_ip=_optional_str(data.get('sourceIP')),
            source_port=_optional_str(data.get('sourcePort')),
            destination_ip=_optional_str(data.get('destinationIP')),
            destination_port=_optional_str(data.get('destinationPort')),
            host=_optional_str(data.get('host'))
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'network': self.network,
            'sourceIP': self.source_ip,
            'sourcePort': self.source_port,
            'destinationIP': self.destination_ip,
            'destinationPort': self.destination_port,
            'host': self.host
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class Connection:
    """
    An open flow through the proxy process.

    Attributes:
        id: Opaque primary key assigned by the remote
        metadata: Flow addressing information
        chains: Outbound tags in the order the remote reports them
        rule: Matched routing rule
        rule_payload: Optional rule argument
        upload: Bytes uploaded so far
        download: Bytes downloaded so far
        start: When the flow opened (None if not reported)
    """
    id: str
    metadata: ConnectionMetadata = field(default_factory=ConnectionMetadata)
    chains: Tuple[str, ...] = ()
    rule: str = ""
    rule_payload: Optional[str] = None
    upload: int = 0
    download: int = 0
    start: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Connection':
        if not data.get('id'):
            raise ValueError("Connection without id")
        return cls(
            id=str(data['id']),
            metadata=ConnectionMetadata.from_dict(data.get('metadata')),
            chains=tuple(str(c) for c in (data.get('chains') or ())),
            rule=str(data.get('rule') or ''),
            rule_payload=data.get('rulePayload') or None,
            upload=int(data.get('upload') or 0),
            download=int(data.get('download') or 0),
            start=parse_optional_timestamp(data.get('start'))
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'metadata': self.metadata.to_dict(),
            'chains': list(self.chains),
            'rule': self.rule,
            'upload': self.upload,
            'download': self.download
        }
        if self.rule_payload:
            data['rulePayload'] = self.rule_payload
        if self.start is not None:
            data['start'] = self.start.isoformat()
        return data


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)
