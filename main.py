#!/usr/bin/env python3
"""Main entry point for the Rivals Arena tournament engine."""

import logging
import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from config.settings import get_default_config


def setup_logging(level: str = "INFO"):
    """Configure logging for the web server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def print_usage():
    """Print usage information for local development."""

    print("Rivals Arena Tournament Engine")
    print("=" * 40)
    print("Available entry points:")
    print()
    print("🌐 Web Server (REST API):")
    print("   python main.py --web")
    print()
    print("⚙️  Configuration:")
    print("   arena_config.json is created on first run")
    print("   DISCORD_WEBHOOK_URL enables match announcements")
    print()


def start_web_server():
    """Start the FastAPI web server."""
    config = get_default_config()
    setup_logging(config.system.log_level)

    import uvicorn

    from web.api import app

    port = int(os.environ.get("PORT", config.system.port))

    print("🏆 Starting Rivals Arena Web Server...")
    print(f"📡 API Documentation: http://localhost:{port}/docs")

    uvicorn.run(app, host=config.system.host, port=port, log_level="info", access_log=True)


def main():
    """Main entry point."""
    # Check for production environment (Railway, Docker, Heroku, etc.)
    is_production = any([
        "RAILWAY_ENVIRONMENT" in os.environ,
        "PORT" in os.environ,
        "DYNO" in os.environ,  # Heroku
        os.environ.get("ENVIRONMENT") == "production"
    ])

    if is_production or "--web" in sys.argv:
        start_web_server()
    else:
        print_usage()
        print("💡 Tip: Use 'python main.py --web' to start the server")


if __name__ == "__main__":
    main()
