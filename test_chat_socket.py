"""
Tests for the chat websocket: reconnect back-off, frame parsing and the
per-user registry. No real sockets are opened.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from services.chat_socket import Backoff, ChatSocket, ChatSocketRegistry, parse_incoming_message, socket_url


def frame(**fields):
    return json.dumps(fields)


def test_backoff_doubles_up_to_ceiling():
    backoff = Backoff()
    delays = [backoff.next_delay() for _ in range(7)]
    assert delays == [1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 30.0]


def test_backoff_reset_starts_over():
    backoff = Backoff()
    backoff.next_delay()
    backoff.next_delay()
    backoff.reset()
    assert backoff.next_delay() == 1.0


def test_socket_url():
    assert socket_url('ws://localhost:8089/', 'abc') == 'ws://localhost:8089/ws/messages?userId=abc'


def test_parse_incoming_message():
    message = parse_incoming_message(frame(_id='m1', sender_id='a', receiver_id='b', content='Zdravo',
                                           sent_at='2025-01-10T10:00:00Z', extra='ignored'))
    assert message == {
        'id': 'm1', 'sender_id': 'a', 'receiver_id': 'b', 'job_listing_id': None,
        'content': 'Zdravo', 'sent_at': '2025-01-10T10:00:00Z', 'read': False,
    }


@pytest.mark.parametrize('raw', ['not json', '[1, 2]', '"text"', None])
def test_parse_ignores_non_objects(raw):
    assert parse_incoming_message(raw) is None


def test_chat_socket_requires_user():
    with pytest.raises(ValueError):
        ChatSocket('ws://x', '')


def test_incoming_messages_are_kept_in_order():
    chat = ChatSocket('ws://x', 'u1', history_size=3)
    for n in range(1, 5):
        chat._on_message(None, frame(id=f'm{n}', content=str(n)))
    chat._on_message(None, 'garbage')

    assert [m['id'] for m in chat.messages_since()] == ['m2', 'm3', 'm4']
    assert chat.last_message['id'] == 'm4'
    assert [m['id'] for m in chat.messages_since('m2')] == ['m3', 'm4']
    assert chat.messages_since('m4') == []
    assert len(chat.messages_since('unknown')) == 3


def test_open_resets_backoff_and_close_marks_disconnected():
    chat = ChatSocket('ws://x', 'u1')
    chat.backoff.next_delay()
    chat.backoff.next_delay()
    chat._on_open(None)
    assert chat.connected
    assert chat.backoff.delay == 1.0
    chat._on_close(None, 1000, 'bye')
    assert not chat.connected


def test_error_closes_the_socket():
    chat = ChatSocket('ws://x', 'u1')
    ws = MagicMock()
    chat._on_error(ws, RuntimeError('reset by peer'))
    ws.close.assert_called_once_with()


def test_connect_once_runs_websocket_app():
    chat = ChatSocket('ws://x', 'u1')
    with patch('services.chat_socket.websocket.WebSocketApp') as app_cls:
        chat._connect_once()
    app_cls.assert_called_once()
    assert app_cls.call_args.args == ('ws://x/ws/messages?userId=u1',)
    app_cls.return_value.run_forever.assert_called_once_with()
    assert not chat.connected
    assert chat._ws is None


def test_run_reconnects_with_backoff_until_stopped():
    chat = ChatSocket('ws://x', 'u1')
    waits = []

    def fake_wait(delay):
        waits.append(delay)
        if len(waits) == 3:
            chat._stopped.set()
        return chat._stopped.is_set()

    with patch.object(chat, '_connect_once') as connect, patch.object(chat._stopped, 'wait', side_effect=fake_wait):
        chat._run()
    assert connect.call_count == 3
    assert waits == [1.0, 2.0, 4.0]


def test_disabled_registry_starts_nothing():
    registry = ChatSocketRegistry('ws://x', enabled=False)
    assert registry.get_or_start('u1') is None
    assert registry.get('u1') is None


def test_registry_reuses_one_socket_per_user():
    registry = ChatSocketRegistry('ws://x')
    with patch.object(ChatSocket, 'start') as start, patch.object(ChatSocket, 'stop') as stop:
        first = registry.get_or_start('u1')
        second = registry.get_or_start('u1')
        assert first is second
        assert registry.get_or_start('') is None
        assert start.call_count == 2

        registry.stop('u1')
        assert registry.get('u1') is None
        stop.assert_called_once_with()


def test_registry_stop_all():
    registry = ChatSocketRegistry('ws://x')
    with patch.object(ChatSocket, 'start'), patch.object(ChatSocket, 'stop') as stop:
        registry.get_or_start('u1')
        registry.get_or_start('u2')
        registry.stop_all()
    assert stop.call_count == 2
    assert registry.get('u1') is None
