"""Multi-platform engagement metrics ingestion (Instagram, VK, YouTube, TikTok)."""

__version__ = "0.1.0"
