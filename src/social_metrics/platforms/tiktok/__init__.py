"""TikTok videos provider (tiktok-scraper7 RapidAPI)."""
