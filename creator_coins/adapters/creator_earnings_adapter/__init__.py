from .adapter import CreatorEarningsAdapter
