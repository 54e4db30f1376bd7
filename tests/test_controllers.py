"""
Tests for operator actions: proxy selection, connection close, service
commands and configuration editing.
"""

import json
import threading
import time
from unittest.mock import Mock

import pytest

from singbox_ui.api.channel import RemoteStateChannel
from singbox_ui.api.client import ControlPlaneClient
from singbox_ui.api.errors import RemoteRejection, TransportError, ValidationError
from singbox_ui.control.config_editor import ConfigEditor, parse_json
from singbox_ui.control.connections import ConnectionCloser
from singbox_ui.control.proxy_groups import ProxyGroupController
from singbox_ui.control.service import ServiceController
from singbox_ui.error_handling.error_manager import ErrorCategory, ErrorManager
from singbox_ui.models.app_config import AppConfig
from singbox_ui.models.connection import Connection
from singbox_ui.models.inbound import TProxyInbound
from singbox_ui.state.store import ClientStateStore

PROXIES = {
    'proxies': {
        'GLOBAL': {'type': 'Selector', 'all': ['node-a', 'node-b'], 'now': 'node-a'},
        'auto': {'type': 'URLTest', 'all': ['node-a', 'node-b'], 'now': 'node-b'},
        'node-a': {'type': 'vless'},
        'node-b': {'type': 'trojan'},
        'direct': {'type': 'direct'},
    }
}


def rejection(message: str = "rejected", status_code: int = 500) -> RemoteRejection:
    return RemoteRejection(message, status_code)


class TestProxyGroupController:
    """Test confirmed-only proxy selection."""

    def setup_method(self):
        self.client = Mock(spec=ControlPlaneClient)
        self.client.get_proxies.return_value = PROXIES
        self.errors = ErrorManager()
        self.controller = ProxyGroupController(
            self.client, RemoteStateChannel(self.client), self.errors
        )
        assert self.controller.refresh()

    def test_refresh(self):
        assert {g.name for g in self.controller.get_groups()} == {'GLOBAL', 'auto'}
        assert self.controller.node_count == 4

    def test_refresh_failure_keeps_mirror(self):
        self.client.get_proxies.side_effect = TransportError("down")

        assert not self.controller.refresh()
        assert self.controller.get_group('GLOBAL').active == 'node-a'

    def test_select_success_sets_active(self):
        assert self.controller.select('GLOBAL', 'node-b')

        self.client.select_proxy.assert_called_once_with('GLOBAL', 'node-b')
        assert self.controller.get_group('GLOBAL').active == 'node-b'

    def test_select_failure_leaves_active(self):
        self.client.select_proxy.side_effect = rejection("proxy not found", 404)

        assert not self.controller.select('GLOBAL', 'node-b')

        assert self.controller.get_group('GLOBAL').active == 'node-a'
        history = self.errors.get_error_history()
        assert len(history) == 1
        assert history[0].category == ErrorCategory.REMOTE_REJECTION
        assert 'proxy not found' in history[0].message

    def test_select_non_member_rejected_locally(self):
        assert not self.controller.select('GLOBAL', 'node-z')

        self.client.select_proxy.assert_not_called()
        assert self.errors.get_error_history()[0].category == ErrorCategory.VALIDATION

    def test_select_unknown_group_forwarded(self):
        assert self.controller.select('manual', 'node-a')
        self.client.select_proxy.assert_called_once_with('manual', 'node-a')
        assert self.controller.get_group('manual') is None


class TestConnectionCloser:
    """Test optimistic connection close."""

    def setup_method(self):
        self.client = Mock(spec=ControlPlaneClient)
        self.store = ClientStateStore()
        self.store.set_connections([Connection(id='a'), Connection(id='b')])
        self.errors = ErrorManager()
        self.closer = ConnectionCloser(self.client, self.store, self.errors)

    def test_close_removes_locally(self):
        assert self.closer.close('a')

        self.client.close_connection.assert_called_once_with('a')
        assert [c.id for c in self.store.connections] == ['b']

    def test_removed_before_remote_answers(self):
        seen_during_request = []
        self.client.close_connection.side_effect = (
            lambda _id: seen_during_request.extend(c.id for c in self.store.connections)
        )

        self.closer.close('a')

        assert seen_during_request == ['b']

    def test_failure_reported_and_restored_by_next_poll(self):
        self.client.close_connection.side_effect = rejection("no such connection", 404)

        assert not self.closer.close('a')
        assert [c.id for c in self.store.connections] == ['b']
        assert len(self.errors.get_error_history()) == 1

        # The next poll replaces the list wholesale
        self.store.set_connections([Connection(id='a'), Connection(id='b')])
        assert [c.id for c in self.store.connections] == ['a', 'b']

    def test_close_is_single_store_mutation(self):
        store = Mock(wraps=self.store)
        closer = ConnectionCloser(self.client, store, self.errors)

        # A poll landing before the removal is kept, not overwritten
        self.store.set_connections([Connection(id='a'), Connection(id='b'), Connection(id='c')])
        assert closer.close('a')

        store.remove_connection.assert_called_once_with('a')
        store.set_connections.assert_not_called()
        assert [c.id for c in self.store.connections] == ['b', 'c']

    def test_close_all_matching(self):
        assert self.closer.close_all() == 2
        assert self.store.connections == ()


class TestServiceController:
    """Test lifecycle commands and follow-up status polls."""

    def setup_method(self):
        self.client = Mock(spec=ControlPlaneClient)
        self.refreshes = []
        self.refreshed = threading.Event()
        self.errors = ErrorManager()

        def refresh():
            self.refreshes.append(time.monotonic())
            if len(self.refreshes) >= 2:
                self.refreshed.set()

        self.controller = ServiceController(
            self.client, refresh, self.errors, start_stop_delay=0.2, restart_delay=0.3
        )

    def teardown_method(self):
        self.controller.shutdown()

    @pytest.mark.parametrize("command", ['start', 'stop', 'restart'])
    def test_command_polls_now_and_later(self, command):
        assert getattr(self.controller, command)()

        getattr(self.client, command).assert_called_once()
        assert len(self.refreshes) == 1
        assert self.refreshed.wait(2.0)
        assert len(self.refreshes) == 2

    def test_restart_waits_longer(self):
        started = time.monotonic()
        self.controller.restart()
        assert self.refreshed.wait(2.0)
        assert self.refreshes[1] - started >= 0.25

    def test_rejected_command_reported_without_poll(self):
        self.client.start.side_effect = rejection("already running", 409)

        assert not self.controller.start()

        assert self.refreshes == []
        assert self.controller.pending_repolls() == 0
        assert 'already running' in self.errors.get_error_history()[0].message

    def test_each_rejected_command_notifies(self):
        notifications = []
        self.errors.add_error_callback(notifications.append)
        self.client.start.side_effect = rejection("core binary missing")

        assert not self.controller.start()
        assert not self.controller.start()

        assert len(notifications) == 2
        assert all('core binary missing' in n.message for n in notifications)

    def test_shutdown_cancels_pending_repoll(self):
        controller = ServiceController(self.client, lambda: self.refreshes.append(1),
                                       self.errors, start_stop_delay=0.2)
        controller.start()
        assert controller.pending_repolls() == 1

        controller.shutdown()
        time.sleep(0.3)

        assert self.refreshes == [1]
        assert controller.pending_repolls() == 0

    def test_refresh_error_is_contained(self):
        controller = ServiceController(self.client, Mock(side_effect=RuntimeError("boom")),
                                       self.errors, start_stop_delay=10.0)
        try:
            assert controller.stop()
        finally:
            controller.shutdown()


class TestConfigEditor:
    """Test validation and saving of configuration."""

    def setup_method(self):
        self.client = Mock(spec=ControlPlaneClient)
        self.errors = ErrorManager()
        self.editor = ConfigEditor(self.client, self.errors)

    def test_save_app_config_writes_inbounds(self):
        inbounds = self.editor.save_app_config(AppConfig(proxy_mode='tproxy', lan_proxy=True))

        assert isinstance(inbounds[0], TProxyInbound)
        self.client.set_app_config.assert_called_once()
        payload = self.client.set_inbounds.call_args[0][0]
        assert [i['tag'] for i in payload] == ['tproxy-in', 'mixed-in']
        assert payload[0]['listen'] == '0.0.0.0'

    def test_save_app_config_from_form(self):
        inbounds = self.editor.save_app_config({'proxy_mode': 'redir', 'redir_port': 7000})
        assert inbounds[0].listen_port == 7000

    def test_form_false_string_stays_on_loopback(self):
        inbounds = self.editor.save_app_config({
            'proxy_mode': 'tproxy', 'mixed_port': '7890', 'tproxy_port': '7893',
            'lan_proxy': 'false'
        })

        assert [(i.listen, i.listen_port) for i in inbounds] == [
            ('127.0.0.1', 7893), ('127.0.0.1', 7890)
        ]
        payload = self.client.set_inbounds.call_args[0][0]
        assert {i['listen'] for i in payload} == {'127.0.0.1'}

    def test_unreadable_lan_flag_not_sent(self):
        assert self.editor.save_app_config({'proxy_mode': 'redir', 'lan_proxy': 'sometimes'}) is None
        self.client.set_app_config.assert_not_called()
        assert self.errors.get_error_history()[0].category == ErrorCategory.VALIDATION

    def test_invalid_form_not_sent(self):
        assert self.editor.save_app_config({'proxy_mode': 'redir', 'redir_port': 70000}) is None

        self.client.set_app_config.assert_not_called()
        self.client.set_inbounds.assert_not_called()
        assert self.errors.get_error_history()[0].category == ErrorCategory.VALIDATION

    def test_rejected_app_config_skips_inbounds(self):
        self.client.set_app_config.side_effect = rejection("read-only")

        assert self.editor.save_app_config(AppConfig()) is None
        self.client.set_inbounds.assert_not_called()

    def test_load_app_config_failure(self):
        self.client.get_app_config.side_effect = TransportError("down")
        assert self.editor.load_app_config() is None
        assert self.errors.get_error_history()[0].category == ErrorCategory.TRANSPORT

    def test_save_section_parses_json(self):
        assert self.editor.save_section('dns', '{"servers": []}')
        self.client.set_config_section.assert_called_once_with('dns', {'servers': []})

    def test_save_section_invalid_json_not_sent(self):
        assert not self.editor.save_section('route', '{"rules": [')

        self.client.set_config_section.assert_not_called()
        assert self.errors.get_error_history()[0].category == ErrorCategory.VALIDATION

    def test_unknown_section(self):
        assert not self.editor.save_section('experimental', {})
        assert self.editor.load_section('experimental') is None
        self.client.set_config_section.assert_not_called()
        self.client.get_config_section.assert_not_called()

    def test_load_section(self):
        self.client.get_config_section.return_value = {'rules': []}
        assert self.editor.load_section('route') == {'rules': []}

    def test_delete_outbound(self):
        self.client.get_outbounds.return_value = [
            {'type': 'selector', 'tag': 'proxy', 'outbounds': ['node-a', 'node-b']},
            {'type': 'vless', 'tag': 'node-a'},
            {'type': 'vless', 'tag': 'node-b'},
        ]

        assert self.editor.delete_outbound('node-a')

        saved = self.client.set_outbounds.call_args[0][0]
        assert [o['tag'] for o in saved] == ['proxy', 'node-b']
        assert saved[0]['outbounds'] == ['node-b']

    def test_delete_unknown_outbound(self):
        self.client.get_outbounds.return_value = []
        assert not self.editor.delete_outbound('ghost')
        self.client.set_outbounds.assert_not_called()

    def test_add_outbound_from_json(self):
        self.client.get_outbounds.return_value = [
            {'type': 'urltest', 'tag': 'auto', 'outbounds': ['node-a']},
        ]

        assert self.editor.add_outbound(json.dumps({'type': 'trojan', 'tag': 'node-b'}))

        saved = self.client.set_outbounds.call_args[0][0]
        assert saved[0]['outbounds'] == ['node-b', 'node-a']
        assert saved[1]['tag'] == 'node-b'

    @pytest.mark.parametrize("raw", [
        '{"type": "vless"',
        '["not", "an", "object"]',
        '{"tag": "no-type"}',
    ])
    def test_add_outbound_invalid(self, raw):
        assert not self.editor.add_outbound(raw)
        self.client.set_outbounds.assert_not_called()

    def test_add_duplicate_outbound(self):
        self.client.get_outbounds.return_value = [{'type': 'vless', 'tag': 'node-a'}]

        assert not self.editor.add_outbound({'type': 'vless', 'tag': 'node-a'})
        self.client.set_outbounds.assert_not_called()
        assert self.errors.get_error_history()[0].category == ErrorCategory.VALIDATION

    def test_import_subscription(self):
        self.client.subscribe.return_value = 7

        assert self.editor.import_subscription(' https://sub.example.com ', 'airport') == 7
        self.client.subscribe.assert_called_once_with('https://sub.example.com', 'airport')

    def test_import_subscription_requires_url(self):
        assert self.editor.import_subscription('   ') is None
        self.client.subscribe.assert_not_called()

    def test_import_subscription_rejected(self):
        self.client.subscribe.side_effect = rejection("fetch subscription: 403")
        assert self.editor.import_subscription('https://sub.example.com') is None
        assert 'fetch subscription: 403' in self.errors.get_error_history()[0].message

    def test_parse_json(self):
        assert parse_json('{"a": 1}') == {'a': 1}
        with pytest.raises(ValidationError):
            parse_json('{a: 1}')
