"""
Backend API Service - FastAPI Application

Responsibilities:
- Run the refresher in-process (APScheduler started from the app lifespan)
- Serve cached content files under /cache
- Serve the static front-end files
- Report the time of the last refresh cycle attempt

Endpoints:
- GET /status - {"lastUpdate": "..."}
- GET /health - Health check
- GET /cache/{filename} - Cached upcoming.json, live.json, completed.json
- GET / - Static front-end (STATIC_DIR)
"""
