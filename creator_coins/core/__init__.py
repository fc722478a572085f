from creator_coins.core.adapters.BaseAdapter import BaseAdapter
from creator_coins.core.config import PipelineSettings
from creator_coins.core.errors import CoinPipelineError

__all__ = [
    "BaseAdapter",
    "CoinPipelineError",
    "PipelineSettings",
]
