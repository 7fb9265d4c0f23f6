#!/usr/bin/env python3
"""
Main entry point for the Fair Meet API (development server)
"""

from fairmeet.app import configure_logging, create_app
from fairmeet.config import Settings

if __name__ == '__main__':
    settings = Settings.from_env()
    configure_logging(settings)
    app = create_app(settings)
    if settings.missing_keys:
        print("\n" + "=" * 50)
        print("SETUP REQUIRED:")
        print("=" * 50)
        print(f"Missing: {', '.join(settings.missing_keys)}")
        print("Set them in your environment or .env file and restart.")
        print("API will start but the meeting endpoints are disabled without them\n")
    app.run(debug=True, host=settings.host, port=settings.port)
