from .adapter import CoinFactoryAdapter
