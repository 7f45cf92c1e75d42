"""
lnbridge - uniform Lightning node control over stream JSON-RPC and REST backends.
"""

from loguru import logger

__version__ = "0.1.0"

# Library logging stays quiet unless the application opts in.
logger.disable("lnbridge")
