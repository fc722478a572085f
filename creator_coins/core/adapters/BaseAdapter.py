from __future__ import annotations

from abc import ABC
from typing import Any

from loguru import logger

from creator_coins.core.config import PipelineSettings


class BaseAdapter(ABC):
    """Common shape for the contract adapters.

    An adapter is bound to one resolved ``PipelineSettings`` snapshot and never
    reads the global config after construction.
    """

    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        settings: PipelineSettings,
        config: dict[str, Any] | None = None,
    ):
        self.name = name
        self.settings = settings
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__)

    @property
    def chain_id(self) -> int:
        return self.settings.chain_id

    async def close(self) -> None:
        pass
