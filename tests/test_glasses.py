"""Tests for the BLE glasses display (no radio needed)"""

import json
from unittest.mock import AsyncMock

import pytest
from bleak.exc import BleakError

from stillness.display import collapsed_page
from stillness.exceptions import CommandError, ConnectionError
from stillness.glasses import (
    COMMAND_CHAR_UUID,
    Glasses,
    decode_event,
    encode_frame,
)


def connected_glasses():
    glasses = Glasses("AA:BB:CC:DD:EE:FF")
    glasses._client = AsyncMock()
    glasses._connected = True
    return glasses


def sent_messages(glasses):
    data = b"".join(call.args[1] for call in glasses._client.write_gatt_char.call_args_list)
    return [json.loads(line) for line in data.decode("utf-8").splitlines()]


def test_frames_are_chunked_and_newline_terminated():
    chunks = encode_frame({"content": "x" * 500}, chunk_size=100)
    assert all(len(c) <= 100 for c in chunks)
    data = b"".join(chunks)
    assert data.endswith(b"\n")
    assert json.loads(data) == {"content": "x" * 500}


@pytest.mark.parametrize("data,expected", [
    (b"\x00", 0),
    (b"\x05", 5),
    (b'{"sysEvent": {"eventType": 4}}', {"sysEvent": {"eventType": 4}}),
    (b"\xff\xfe", None),
    (b"{oops", None),
])
def test_decode_event(data, expected):
    assert decode_event(data) == expected


@pytest.mark.asyncio
async def test_send_requires_connection():
    with pytest.raises(ConnectionError):
        await Glasses("AA:BB").update_text(3, "header", "hi")


@pytest.mark.asyncio
async def test_page_and_text_messages():
    glasses = connected_glasses()
    assert await glasses.create_page(collapsed_page(0)) == 0
    await glasses.update_text(5, "badge", "STILLNESS")

    create, text = sent_messages(glasses)
    assert create["op"] == "create"
    assert create["page"]["containerTotalNum"] == 3
    assert text == {
        "op": "text",
        "containerID": 5,
        "containerName": "badge",
        "contentOffset": 0,
        "contentLength": 9,
        "content": "STILLNESS",
    }
    assert glasses._client.write_gatt_char.call_args.args[0] == COMMAND_CHAR_UUID


@pytest.mark.asyncio
async def test_write_failure_is_command_error():
    glasses = connected_glasses()
    glasses._client.write_gatt_char.side_effect = BleakError("gatt write failed")
    with pytest.raises(CommandError):
        await glasses.rebuild_page(collapsed_page(0))


def test_notifications_reach_listeners_until_unsubscribed():
    glasses = Glasses("AA:BB")
    received = []
    unsubscribe = glasses.on_event(received.append)

    glasses._on_notify(None, bytearray(b"\x02"))
    glasses._on_notify(None, bytearray(b"{bad"))
    unsubscribe()
    glasses._on_notify(None, bytearray(b"\x00"))

    assert received == [2]
