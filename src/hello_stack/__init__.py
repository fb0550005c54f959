"""
Two-process hello demo: a FastAPI backend serving one static message and a
frontend view that fetches and renders it.
"""

__version__ = "1.0.0"
