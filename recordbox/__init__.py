"""
recordbox — lazy query pipelines and upserts over whole-snapshot record stores.
"""

__version__ = "0.3.0"
