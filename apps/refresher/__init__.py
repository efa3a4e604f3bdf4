"""
Refresher App - Scheduled Content Cache Refresh

Responsibilities:
- Scheduled execution every REFRESH_INTERVAL_SECONDS (APScheduler interval job)
- Fresh token per cycle from the upstream token endpoint
- Three concurrent authorized content fetches (upcoming, live, completed)
- Exponential backoff retry strategy per request (tenacity)
- Base64 decode and atomic overwrite of one cache file per content type

Output:
- <CACHE_DIR>/upcoming.json
- <CACHE_DIR>/live.json
- <CACHE_DIR>/completed.json
"""
