"""
Live chat feed from the employment service.

One ChatSocket per user keeps a websocket open to /ws/messages and keeps
the most recent incoming messages. When the connection drops it reconnects
with exponential back-off: 1s, 2s, 4s ... capped at 30s, reset after every
successful connect.
"""

import json
import logging
import threading
from collections import deque
from urllib.parse import urlencode

import websocket

logger = logging.getLogger(__name__)

MESSAGE_FIELDS = ('id', 'sender_id', 'receiver_id', 'job_listing_id', 'content', 'sent_at', 'read')


class Backoff:
    """Reconnect delay that doubles on every use up to a ceiling."""

    def __init__(self, initial=1.0, maximum=30.0, factor=2):
        self.initial = initial
        self.maximum = maximum
        self.factor = factor
        self.delay = initial

    def reset(self):
        self.delay = self.initial

    def next_delay(self):
        delay = self.delay
        self.delay = min(self.delay * self.factor, self.maximum)
        return delay


def parse_incoming_message(raw):
    """Decode one text frame. Returns None for anything that is not a JSON object."""
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    message = {field: data.get(field) for field in MESSAGE_FIELDS}
    if message['id'] is None:
        message['id'] = data.get('_id') or data.get('ID')
    message['read'] = bool(message['read'])
    return message


def socket_url(base_url, user_id):
    return f"{base_url.rstrip('/')}/ws/messages?{urlencode({'userId': user_id})}"


class ChatSocket:
    def __init__(self, base_url, user_id, history_size=50):
        if not user_id:
            raise ValueError('user_id is required')
        self.user_id = user_id
        self.url = socket_url(base_url, user_id)
        self.backoff = Backoff()
        self.last_message = None
        self.history = deque(maxlen=history_size)
        self.connected = False
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._ws = None
        self._thread = None

    @property
    def running(self):
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        if self.running:
            return
        self._stopped.clear()
        self._thread = threading.Thread(target=self._run, name=f'chat-socket-{self.user_id}', daemon=True)
        self._thread.start()

    def stop(self):
        self._stopped.set()
        ws = self._ws
        if ws is not None:
            ws.close()

    def _run(self):
        while not self._stopped.is_set():
            self._connect_once()
            if self._stopped.is_set():
                break
            delay = self.backoff.next_delay()
            logger.info(f"Chat socket for {self.user_id} closed, reconnecting in {delay:.0f}s")
            self._stopped.wait(delay)

    def _connect_once(self):
        ws = websocket.WebSocketApp(
            self.url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        self._ws = ws
        try:
            ws.run_forever()
        finally:
            self.connected = False
            self._ws = None

    def _on_open(self, ws):
        self.connected = True
        self.backoff.reset()
        logger.debug(f"Chat socket connected for {self.user_id}")

    def _on_message(self, ws, raw):
        message = parse_incoming_message(raw)
        if message is None:
            logger.debug(f"Ignoring malformed chat frame for {self.user_id}")
            return
        with self._lock:
            self.last_message = message
            self.history.append(message)

    def _on_error(self, ws, error):
        logger.warning(f"Chat socket error for {self.user_id}: {error}")
        ws.close()

    def _on_close(self, ws, close_status_code=None, close_msg=None):
        self.connected = False

    def messages_since(self, message_id=None):
        """Messages received after message_id, oldest first. All of them when it is unknown."""
        with self._lock:
            messages = list(self.history)
        if not message_id:
            return messages
        for index, message in enumerate(messages):
            if message.get('id') == message_id:
                return messages[index + 1:]
        return messages


class ChatSocketRegistry:
    """Starts one socket per user on first use."""

    def __init__(self, base_url, enabled=True):
        self.base_url = base_url
        self.enabled = enabled
        self._sockets = {}
        self._lock = threading.Lock()

    def get(self, user_id):
        with self._lock:
            return self._sockets.get(user_id)

    def get_or_start(self, user_id):
        if not self.enabled or not user_id:
            return None
        with self._lock:
            chat = self._sockets.get(user_id)
            if chat is None:
                chat = ChatSocket(self.base_url, user_id)
                self._sockets[user_id] = chat
        chat.start()
        return chat

    def stop(self, user_id):
        with self._lock:
            chat = self._sockets.pop(user_id, None)
        if chat is not None:
            chat.stop()

    def stop_all(self):
        with self._lock:
            sockets = list(self._sockets.values())
            self._sockets.clear()
        for chat in sockets:
            chat.stop()
