"""Main entry point for EchoShop."""

import uvicorn
from dotenv import load_dotenv

from echoshop import Application
from echoshop.api import create_fastapi_app
from echoshop.config import PROJECT_ROOT, Settings
from echoshop.logging_config import setup_logging
from sim import Sim


def main():
    """Run the application."""
    load_dotenv(PROJECT_ROOT / ".env")

    settings = Settings.from_env()
    setup_logging()

    api_url = f"http://{settings.api_host}:{settings.api_port}"

    application = Application(settings=settings)
    sim = Sim(api_url=api_url)
    app = create_fastapi_app(application, sim)

    # Run with uvicorn
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
