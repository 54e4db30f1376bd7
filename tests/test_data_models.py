"""
Unit tests for data models in singbox_ui.models module.
Tests validation, serialization, and decoding of manager payloads.
"""

import pytest
from datetime import datetime, timezone

from singbox_ui.models.app_status import AppStatus, StatusSnapshot
from singbox_ui.models.traffic import TrafficSample
from singbox_ui.models.log_entry import LogEntry
from singbox_ui.models.connection import Connection, ConnectionMetadata
from singbox_ui.models.app_config import AppConfig, ProxyMode
from singbox_ui.models.proxy_group import (
    ProxyGroup, ProxyGroupType, parse_proxy_groups, count_nodes
)
from singbox_ui.models.timeutil import parse_timestamp, parse_optional_timestamp
from singbox_ui.models import outbound as outbound_ops

from test_mocks import connection_payload


class TestStatusSnapshot:
    """Test StatusSnapshot decoding and helpers."""

    def test_from_dict(self):
        snapshot = StatusSnapshot.from_dict({'status': 'running'})
        assert snapshot.status == AppStatus.RUNNING
        assert snapshot.error == ""
        assert snapshot.status_error is None
        assert snapshot.is_running()

    def test_error_text(self):
        snapshot = StatusSnapshot.from_dict({'status': 'error', 'error': 'bind failed'})
        assert snapshot.status_error == 'bind failed'
        assert snapshot.get_status_text() == "Error: bind failed"

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            StatusSnapshot.from_dict({'status': 'exploded'})

    def test_busy_states(self):
        assert StatusSnapshot(AppStatus.STARTING).is_busy()
        assert StatusSnapshot(AppStatus.STOPPING).is_busy()
        assert not StatusSnapshot(AppStatus.RUNNING).is_busy()

    def test_default_is_stopped(self):
        snapshot = StatusSnapshot()
        assert snapshot.status == AppStatus.STOPPED
        assert snapshot.get_status_text() == "Stopped"


class TestTrafficSample:
    """Test TrafficSample validation."""

    def test_from_dict(self):
        sample = TrafficSample.from_dict({'up': 10, 'down': 20})
        assert sample == TrafficSample(up=10, down=20)
        assert sample.to_dict() == {'up': 10, 'down': 20}

    def test_missing_fields_default_to_zero(self):
        assert TrafficSample.from_dict({}) == TrafficSample(0, 0)

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            TrafficSample(up=-1, down=0)


class TestTimestamps:
    """Test timestamp parsing of manager values."""

    def test_nanosecond_precision_truncated(self):
        parsed = parse_timestamp('2024-05-01T12:00:00.123456789Z')
        assert parsed == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    def test_short_fraction_padded(self):
        parsed = parse_timestamp('2024-05-01T12:00:00.5+02:00')
        assert parsed.microsecond == 500000
        assert parsed.utcoffset().total_seconds() == 7200

    def test_naive_is_utc(self):
        parsed = parse_timestamp('2024-05-01T12:00:00')
        assert parsed.tzinfo == timezone.utc

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_timestamp('yesterday')
        with pytest.raises(ValueError):
            parse_timestamp(None)

    def test_optional(self):
        assert parse_optional_timestamp(None) is None
        assert parse_optional_timestamp('') is None
        assert parse_optional_timestamp('garbage') is None


class TestLogEntry:
    """Test LogEntry decoding and level labels."""

    def test_from_dict(self):
        entry = LogEntry.from_dict({
            'time': '2024-05-01T12:00:00Z', 'level': 'info', 'message': 'started'
        })
        assert entry.level == 'info'
        assert entry.message == 'started'
        assert entry.is_known_level()

    def test_unknown_level_passes_through(self):
        entry = LogEntry.from_dict({
            'time': '2024-05-01T12:00:00Z', 'level': 'trace', 'message': 'x'
        })
        assert entry.level == 'trace'
        assert not entry.is_known_level()
        assert entry.get_level_label() == 'TRAC'

    def test_level_labels(self):
        labels = {}
        for level in ('info', 'debug', 'warn', 'error'):
            entry = LogEntry(time=datetime.now(timezone.utc), level=level, message='')
            labels[level] = entry.get_level_label()
        assert labels == {'info': 'INFO', 'debug': 'DEBU', 'warn': 'WARN', 'error': 'ERRO'}

    def test_missing_time_rejected(self):
        with pytest.raises(ValueError):
            LogEntry.from_dict({'level': 'info', 'message': 'no time'})


class TestConnection:
    """Test Connection decoding."""

    def test_from_dict(self):
        connection = Connection.from_dict(connection_payload(
            'c1', host='example.com', chains=('proxy-a', 'GLOBAL'), rulePayload='geosite-cn'
        ))
        assert connection.id == 'c1'
        assert connection.metadata.host == 'example.com'
        assert connection.metadata.source_port == '50000'
        assert connection.chains == ('proxy-a', 'GLOBAL')
        assert connection.rule_payload == 'geosite-cn'
        assert connection.download == 2048
        assert connection.start.microsecond == 123456

    def test_missing_metadata_tolerated(self):
        connection = Connection.from_dict({'id': 'c2'})
        assert connection.metadata == ConnectionMetadata()
        assert connection.chains == ()
        assert connection.start is None

    def test_missing_id_rejected(self):
        with pytest.raises(ValueError):
            Connection.from_dict({'rule': 'final'})

    def test_to_dict_uses_wire_names(self):
        data = Connection.from_dict(connection_payload('c3', host='a.com')).to_dict()
        assert data['metadata']['destinationIP'] == '10.0.0.1'
        assert data['metadata']['host'] == 'a.com'


class TestAppConfig:
    """Test AppConfig validation and serialization."""

    def test_defaults(self):
        config = AppConfig()
        assert config.proxy_mode == ProxyMode.TUN
        assert config.mixed_port == 7890
        assert config.redir_port == 7892
        assert config.tproxy_port == 7893
        assert config.lan_proxy is False

    def test_mode_from_string(self):
        assert AppConfig(proxy_mode='tproxy').proxy_mode == ProxyMode.TPROXY

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            AppConfig(proxy_mode='socks')

    @pytest.mark.parametrize("port", [0, 65536, -1, "7890", True])
    def test_invalid_port(self, port):
        with pytest.raises(ValueError):
            AppConfig(mixed_port=port)

    def test_port_bounds_accepted(self):
        config = AppConfig(mixed_port=1, tproxy_port=65535)
        assert config.mixed_port == 1
        assert config.tproxy_port == 65535

    def test_active_port_follows_mode(self):
        assert AppConfig(proxy_mode='tproxy').active_port == 7893
        assert AppConfig(proxy_mode='redir').active_port == 7892

    def test_from_dict_zero_port_uses_default(self):
        config = AppConfig.from_dict({'proxy_mode': 'redir', 'mixed_port': 0, 'redir_port': 9000})
        assert config.mixed_port == 7890
        assert config.redir_port == 9000

    def test_from_dict_form_strings(self):
        config = AppConfig.from_dict({'proxy_mode': 'tproxy', 'mixed_port': '7890',
                                      'tproxy_port': ' 7000 ', 'lan_proxy': 'false',
                                      'auto_start': 'True'})
        assert config.mixed_port == 7890
        assert config.tproxy_port == 7000
        assert config.lan_proxy is False
        assert config.auto_start is True

    @pytest.mark.parametrize("value, expected", [
        (True, True), (False, False), (None, False), (1, True), (0, False),
        ('true', True), ('1', True), ('false', False), ('0', False),
    ])
    def test_from_dict_lan_flag(self, value, expected):
        assert AppConfig.from_dict({'lan_proxy': value}).lan_proxy is expected

    @pytest.mark.parametrize("data", [
        {'lan_proxy': 'maybe'},
        {'lan_proxy': 2},
        {'mixed_port': '78a0'},
        {'mixed_port': '-1'},
    ])
    def test_from_dict_rejects_unparseable_form_values(self, data):
        with pytest.raises(ValueError):
            AppConfig.from_dict(data)

    def test_unknown_fields_preserved(self):
        config = AppConfig.from_dict({'proxy_mode': 'tun', 'singbox_path': '/usr/bin/sing-box'})
        assert config.to_dict()['singbox_path'] == '/usr/bin/sing-box'
        assert config.to_dict()['proxy_mode'] == 'tun'


class TestProxyGroups:
    """Test /proxies payload projections."""

    PAYLOAD = {
        'proxies': {
            'GLOBAL': {'type': 'Selector', 'all': ['node-a', 'node-b'], 'now': 'node-a'},
            'auto': {'type': 'URLTest', 'all': ['node-a', 'node-b'], 'now': 'node-b'},
            'node-a': {'type': 'vless'},
            'node-b': {'type': 'trojan'},
            'direct': {'type': 'direct'},
            'DIRECT': {'type': 'DIRECT'},
            'REJECT': {'type': 'REJECT'},
        }
    }

    def test_only_groups_parsed(self):
        groups = parse_proxy_groups(self.PAYLOAD)
        assert set(groups) == {'GLOBAL', 'auto'}
        assert groups['GLOBAL'].type == ProxyGroupType.SELECTOR
        assert groups['GLOBAL'].members == ('node-a', 'node-b')
        assert groups['auto'].active == 'node-b'

    def test_node_count_excludes_builtins(self):
        assert count_nodes(self.PAYLOAD) == 4

    def test_with_active(self):
        group = ProxyGroup('GLOBAL', ProxyGroupType.SELECTOR, ('a', 'b'), 'a')
        assert group.with_active('b').active == 'b'
        assert group.active == 'a'

    def test_empty_payload(self):
        assert parse_proxy_groups({}) == {}
        assert count_nodes({}) == 0


class TestOutboundOperations:
    """Test outbound list editing."""

    def setup_method(self):
        self.outbounds = [
            {'type': 'selector', 'tag': 'proxy', 'outbounds': ['node-a', 'auto']},
            {'type': 'urltest', 'tag': 'auto', 'outbounds': ['node-a']},
            {'type': 'vless', 'tag': 'node-a', 'server': 'a.example.com'},
            {'type': 'direct', 'tag': 'direct'},
            {'type': 'block', 'tag': 'block'},
        ]

    def test_split(self):
        system, proxies = outbound_ops.split_outbounds(self.outbounds)
        assert [o['tag'] for o in system] == ['proxy', 'auto', 'direct', 'block']
        assert [o['tag'] for o in proxies] == ['node-a']

    def test_remove_strips_group_references(self):
        result = outbound_ops.remove_outbound(self.outbounds, 'node-a')
        assert 'node-a' not in [o['tag'] for o in result]
        assert result[0]['outbounds'] == ['auto']
        assert result[1]['outbounds'] == []
        # input untouched
        assert self.outbounds[0]['outbounds'] == ['node-a', 'auto']

    def test_add_prepends_to_groups(self):
        result = outbound_ops.add_outbound(self.outbounds, {'type': 'trojan', 'tag': 'node-b'})
        assert result[-1]['tag'] == 'node-b'
        assert result[0]['outbounds'] == ['node-b', 'node-a', 'auto']
        assert result[1]['outbounds'] == ['node-b', 'node-a']

    def test_add_duplicate_tag_rejected(self):
        with pytest.raises(ValueError):
            outbound_ops.add_outbound(self.outbounds, {'type': 'vless', 'tag': 'node-a'})

    def test_add_without_tag_rejected(self):
        with pytest.raises(ValueError):
            outbound_ops.add_outbound(self.outbounds, {'type': 'vless'})

    def test_template(self):
        template = outbound_ops.outbound_template('shadowsocks')
        assert template['type'] == 'shadowsocks'
        assert template['server_port'] == 8388
