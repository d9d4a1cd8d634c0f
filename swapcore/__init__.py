"""
swapcore Package

Core imports are lazily loaded so that importing a submodule does not pull
in the whole exchange. For direct module access, import from submodules:

    from swapcore.exchange import ExchangeRegistry, TokenId
    from swapcore.exceptions import SlippageExceeded
"""

# Lazy imports to avoid loading everything at package import
def __getattr__(name):
    """Lazy module loading."""
    if name == 'ExchangeRegistry':
        from .exchange.registry import ExchangeRegistry
        return ExchangeRegistry
    elif name == 'TokenId':
        from .exchange.pool import TokenId
        return TokenId
    elif name == 'load_config':
        from .config import load_config
        return load_config
    raise AttributeError(f"module 'swapcore' has no attribute {name!r}")

__all__ = ['ExchangeRegistry', 'TokenId', 'load_config']
