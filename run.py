"""Run the home services dashboard."""

import uvicorn

from home_services.config import config

if __name__ == "__main__":
    uvicorn.run(
        "home_services.main:app",
        host=config.host,
        port=config.port,
        reload=False,
    )
