"""readmegen: README generation with AI provider failover."""

__version__ = "0.1.0"
