# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Daemon Notifier

Tells a running image-serving daemon to rescan its packages so freshly
committed images become visible without a remount. The daemon speaks
JSON-RPC 2.0 over HTTP on the Unix socket that <root>/ro/ctl points to.
"""

import logging
from typing import Dict, Optional

import aiofiles.os
import httpx

from .errors import DaemonUnreachableError
from .store import RootLayout

logger = logging.getLogger(__name__)

SCAN_PACKAGES_METHOD = "ScanPackages"
RPC_URL = "http://roinstall-daemon/rpc"


def build_scan_packages_request(request_id: int) -> Dict:
    """Build JSON-RPC ScanPackages request"""
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": SCAN_PACKAGES_METHOD,
        "params": {}
    }


class DaemonNotifier:
    """Finds the daemon control socket for a root and asks for a rescan"""

    def __init__(
        self,
        layout: RootLayout,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize daemon notifier.

        Args:
            layout: Live root layout
            timeout: Seconds allowed for connecting and completing the call
            transport: Override the Unix socket transport (tests)
        """
        self.layout = layout
        self.timeout = timeout
        self.transport = transport
        self._request_id = 0

    async def control_socket(self) -> Optional[str]:
        """Return the socket path the ctl symlink points to, or None."""
        try:
            return await aiofiles.os.readlink(self.layout.ctl_link)
        except OSError as e:
            logger.info(f"not updating daemon: {e}")
            return None

    async def notify(self) -> bool:
        """
        Ask the daemon to rescan packages.

        Returns:
            False if no daemon is mounted at this root, True once it rescanned

        Raises:
            DaemonUnreachableError: The control socket exists but the call failed
        """
        socket_path = await self.control_socket()
        if socket_path is None:
            return False

        logger.info(f"connecting to {socket_path}")
        self._request_id += 1
        request = build_scan_packages_request(self._request_id)

        transport = self.transport or httpx.AsyncHTTPTransport(uds=socket_path)
        try:
            async with httpx.AsyncClient(transport=transport, timeout=self.timeout) as client:
                response = await client.post(RPC_URL, json=request)
        except httpx.HTTPError as e:
            raise DaemonUnreachableError(socket_path, str(e) or type(e).__name__) from e

        if response.status_code != 200:
            raise DaemonUnreachableError(socket_path, f"HTTP status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise DaemonUnreachableError(socket_path, f"invalid JSON-RPC response: {e}") from e

        if not isinstance(result, dict):
            raise DaemonUnreachableError(socket_path, "invalid JSON-RPC response")
        if "error" in result:
            error = result["error"] or {}
            message = error.get("message", "Unknown error") if isinstance(error, dict) else str(error)
            raise DaemonUnreachableError(socket_path, f"{SCAN_PACKAGES_METHOD} error: {message}")

        logger.info("daemon rescanned packages")
        return True
