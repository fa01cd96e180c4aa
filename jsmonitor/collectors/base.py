"""
Base class for live traffic capturers.
capture() never raises: any failure is logged and turned into an empty capture so the
run can continue with static findings only.
"""

from typing import List, Optional

from jsmonitor.core.config import Config
from jsmonitor.core.logger import logger
from jsmonitor.models import CapturedRequest


class BaseCapturer:

    name = "base"

    def __init__(self, config: Config, silent_mode: bool = False):
        self.config = config
        self.silent_mode = silent_mode

    def is_enabled(self) -> bool:
        return True

    async def capture(self, token: Optional[str] = None) -> List[CapturedRequest]:
        if not self.is_enabled():
            return []

        try:
            requests = await self._capture(token)
        except Exception as e:
            logger.error(f"[{self.name}] Error capturing API requests: {e}")
            return []

        if not self.silent_mode:
            logger.info(f"[{self.name}] Captured {len(requests)} API requests")
        return list(requests)

    async def _capture(self, token: Optional[str]) -> List[CapturedRequest]:
        raise NotImplementedError


class NullCapturer(BaseCapturer):

    name = "disabled"

    def is_enabled(self) -> bool:
        return False

    async def _capture(self, token: Optional[str]) -> List[CapturedRequest]:
        return []
