import uvicorn
from dotenv import load_dotenv

from summer.utils.config import Settings

# Load .env but do not override env vars already set
load_dotenv(override=False)


# Start the server
def start():
    """Launches the Uvicorn server."""
    settings = Settings()
    uvicorn.run(
        "summer.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.is_local,
    )
