"""基金网格交易看板"""

__version__ = "1.0.0"
