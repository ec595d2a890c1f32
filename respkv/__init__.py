"""
respkv: In-Memory RESP Key-Value Server

A small key-value server built with Python asyncio that speaks the
RESP wire protocol and can seed its dataset from an RDB snapshot.
"""

__version__ = "1.0.0"
