"""
Competitive listing insights.

Collects Amazon product data (ScrapeOps or screenshot extraction), runs
LLM-simulated consumer polls and exposes both behind a small HTTP API.
"""

__version__ = "1.0.0"
