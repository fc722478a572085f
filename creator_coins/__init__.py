__version__ = "0.1.0"

from creator_coins.core import BaseAdapter, CoinPipelineError, PipelineSettings

__all__ = [
    "__version__",
    "BaseAdapter",
    "CoinPipelineError",
    "PipelineSettings",
]
