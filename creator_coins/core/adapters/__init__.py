from creator_coins.core.adapters.BaseAdapter import BaseAdapter

__all__ = ["BaseAdapter"]
