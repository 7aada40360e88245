import json
import threading

import pytest

from chatplus.client import ConnectionClosedError, WsClient


class FakeConnection:
    def __init__(self, incoming=()):
        self.sent = []
        self.incoming = list(incoming)
        self.close_calls = 0

    def send(self, message):
        self.sent.append(message)

    def recv(self):
        return self.incoming.pop(0)

    def close(self):
        self.close_calls += 1


def test_send_bytes_as_binary():
    conn = FakeConnection()
    WsClient(conn).send(b"hello")
    assert conn.sent == [b"hello"]


def test_send_text_is_encoded_to_bytes():
    conn = FakeConnection()
    WsClient(conn).send("你好")
    assert conn.sent == ["你好".encode("utf-8")]


def test_send_json():
    conn = FakeConnection()
    payload = {"type": "start", "content": "你好"}
    WsClient(conn).send_json(payload)
    (text,) = conn.sent
    assert json.loads(text) == payload
    assert text.endswith("\n")
    assert "你好" in text


def test_receive_returns_message():
    conn = FakeConnection(incoming=[b"ping"])
    assert WsClient(conn).receive() == b"ping"


def test_close_is_idempotent():
    conn = FakeConnection()
    client = WsClient(conn)
    client.close()
    client.close()
    assert conn.close_calls == 1
    assert client.closed is True


@pytest.mark.parametrize(
    "action",
    [
        lambda c: c.send(b"x"),
        lambda c: c.send_json({"a": 1}),
        lambda c: c.receive(),
    ],
)
def test_use_after_close_raises(action):
    conn = FakeConnection(incoming=[b"late"])
    client = WsClient(conn)
    client.close()
    with pytest.raises(ConnectionClosedError, match="connection Closed"):
        action(client)
    assert conn.sent == []


def test_concurrent_sends_all_arrive():
    conn = FakeConnection()
    client = WsClient(conn)
    threads = [threading.Thread(target=client.send, args=(bytes([n]),)) for n in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(conn.sent) == [bytes([n]) for n in range(50)]