"""
Stillness - BLE glasses display

Renders Stillness pages on display glasses over Bluetooth Low Energy and
forwards the glasses' gesture events to the engine.

Pages and text updates are sent as compact JSON frames, newline
terminated, split into chunks that fit one GATT write. Gesture events
come back as notifications carrying either a JSON event object or a
single event-code byte.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from .display import Page
from .exceptions import (
    CommandError,
    ConnectionError,
    DeviceNotFoundError,
    TimeoutError
)

logger = logging.getLogger(__name__)


# BLE UUIDs
COMMAND_CHAR_UUID = "0000ff01-0000-1000-8000-00805f9b34fb"
EVENT_CHAR_UUID = "0000ff02-0000-1000-8000-00805f9b34fb"
DEVICE_NAME = "Smart_Glasses"

# Conservative payload size for one write
CHUNK_SIZE = 180


@dataclass
class ScanResult:
    """Represents a discovered glasses device"""
    name: str
    address: str
    rssi: int

    def __str__(self):
        return f"{self.name} ({self.address}) RSSI: {self.rssi}"


def encode_frame(message: Dict[str, Any], chunk_size: int = CHUNK_SIZE) -> List[bytes]:
    """Serialize one message into newline-terminated write chunks"""
    data = json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8") + b"\n"
    return [data[i:i + chunk_size] for i in range(0, len(data), chunk_size)]


def decode_event(data: bytes) -> Any:
    """
    Turn a notification into a raw event for the classifier

    Returns:
        Parsed JSON object, a bare event code, or None if unreadable
    """
    if len(data) == 1:
        return data[0]
    try:
        return json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


class Glasses:
    """
    Display glasses over BLE

    Usage:
        async with Glasses() as glasses:
            engine = StillnessEngine(glasses, store)
            await engine.start()
            engine.attach(glasses)

    Or manually:
        glasses = Glasses()
        await glasses.connect()
        ...
        await glasses.disconnect()
    """

    def __init__(self, address: Optional[str] = None):
        """
        Initialize glasses display

        Args:
            address: Optional BLE address. If None, will scan for device.
        """
        self._address = address
        self._client: Optional[BleakClient] = None
        self._connected = False
        self._listeners: List[Callable[[Any], None]] = []
        self._notifying = False

    @property
    def is_connected(self) -> bool:
        """Check if currently connected"""
        return self._connected and self._client is not None

    @property
    def address(self) -> Optional[str]:
        """Get the device address"""
        return self._address

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    @staticmethod
    async def scan(timeout: float = 5.0) -> List[ScanResult]:
        """
        Scan for glasses

        Args:
            timeout: Scan duration in seconds

        Returns:
            List of discovered devices, strongest signal first
        """
        devices = []

        discovered = await BleakScanner.discover(timeout=timeout)
        for d in discovered:
            if d.name and DEVICE_NAME in d.name:
                devices.append(ScanResult(
                    name=d.name,
                    address=d.address,
                    rssi=getattr(d, "rssi", None) or -100
                ))

        return sorted(devices, key=lambda x: x.rssi, reverse=True)

    async def connect(self, timeout: float = 10.0) -> None:
        """
        Connect to glasses and subscribe to gesture notifications

        Args:
            timeout: Connection timeout in seconds

        Raises:
            DeviceNotFoundError: If no device found during scan
            ConnectionError: If connection fails
            TimeoutError: If the connection attempt timed out
        """
        if not self._address:
            devices = await self.scan(timeout=5.0)
            if not devices:
                raise DeviceNotFoundError("No glasses found. Is the device powered on?")
            self._address = devices[0].address

        try:
            self._client = BleakClient(self._address, timeout=timeout)
            await self._client.connect()
            self._connected = True
            await self._client.start_notify(EVENT_CHAR_UUID, self._on_notify)
            self._notifying = True
        except BleakError as e:
            raise ConnectionError(f"Failed to connect: {e}")
        except asyncio.TimeoutError:
            raise TimeoutError(f"Connection timed out after {timeout}s")
        logger.info("Connected to %s", self._address)

    async def disconnect(self) -> None:
        """Disconnect from glasses"""
        if self._client:
            try:
                if self._notifying:
                    await self._client.stop_notify(EVENT_CHAR_UUID)
                await self._client.disconnect()
            except BleakError as e:
                logger.debug("Ignoring disconnect error: %s", e)
            finally:
                self._connected = False
                self._notifying = False
                self._client = None

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.disconnect()
        return False

    # -------------------------------------------------------------------------
    # Low-level Commands
    # -------------------------------------------------------------------------

    async def _send(self, message: Dict[str, Any]) -> None:
        """
        Send one JSON message to the glasses

        Raises:
            ConnectionError: If not connected
            CommandError: If a write fails
        """
        if not self.is_connected:
            raise ConnectionError("Not connected. Call connect() first.")

        try:
            for chunk in encode_frame(message):
                await self._client.write_gatt_char(COMMAND_CHAR_UUID, chunk, response=True)
        except BleakError as e:
            raise CommandError(f"Command failed: {e}")

    # -------------------------------------------------------------------------
    # Renderer
    # -------------------------------------------------------------------------

    async def create_page(self, page: Page) -> int:
        """
        Create the startup page

        Returns:
            0 on success
        """
        await self._send({"op": "create", "page": page.to_payload()})
        return 0

    async def rebuild_page(self, page: Page) -> None:
        """Replace the whole page"""
        await self._send({"op": "rebuild", "page": page.to_payload()})

    async def update_text(self, region_id: int, region_name: str, content: str) -> None:
        """Replace the text of one region"""
        await self._send({
            "op": "text",
            "containerID": region_id,
            "containerName": region_name,
            "contentOffset": 0,
            "contentLength": len(content),
            "content": content,
        })

    async def shutdown(self) -> None:
        """Close the page on the glasses"""
        if self.is_connected:
            await self._send({"op": "shutdown", "code": 0})

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_event(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        """
        Register a listener for raw gesture events

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _on_notify(self, sender, data: bytearray):
        """Decode a gesture notification and hand it to listeners"""
        event = decode_event(bytes(data))
        if event is None:
            logger.debug("Unreadable notification %r", bytes(data))
            return
        for callback in list(self._listeners):
            callback(event)
