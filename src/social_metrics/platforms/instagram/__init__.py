"""Instagram reels provider (real-time-instagram-scraper RapidAPI)."""
