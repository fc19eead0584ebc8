"""
liveness/server.py
Bare aiohttp listener so hosting platforms that require an open port
see the process as alive. No routes are registered; every path is a 404.
"""

from __future__ import annotations
import logging
from typing import Optional

from aiohttp import web

log = logging.getLogger("greeter.liveness")


class LivenessServer:
    def __init__(self, port: int, host: str = "0.0.0.0"):
        self.host = host
        self.port = port
        self.app  = web.Application()
        self.runner: Optional[web.AppRunner] = None

    @property
    def is_running(self) -> bool:
        return self.runner is not None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual port after start() (differs from self.port when 0 was requested)."""
        if self.runner is None or not self.runner.addresses:
            return None
        return self.runner.addresses[0][1]

    async def start(self) -> None:
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await self.runner.cleanup()
            self.runner = None
            raise
        log.info("Web server running on port %s", self.bound_port)

    async def stop(self) -> None:
        if self.runner is None:
            return
        await self.runner.cleanup()
        self.runner = None
        log.info("Web server stopped.")
