"""Platform providers (Instagram, VK, YouTube, TikTok) and their registry."""
