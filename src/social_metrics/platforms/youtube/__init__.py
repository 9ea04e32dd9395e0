"""YouTube shorts provider (yt-api RapidAPI and YouTube Data API v3)."""
