"""
RideTrack Seat Reservations Backend
===================================
Entry point. Run with: uvicorn main:app --reload
(or ``python main.py``, which takes host / port from API_HOST / API_PORT).
"""

import uvicorn

from ridetrack.api.app import create_app
from ridetrack.config import settings

app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
