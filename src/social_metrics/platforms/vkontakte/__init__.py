"""VK clips provider (vk-scraper RapidAPI)."""
