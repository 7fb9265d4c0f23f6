#!/usr/bin/env python3
"""
Production runner for Fair Meet
- Serves the Flask API with waitress
- Loads .env for provider keys and other settings

Usage:
  python3 run_prod.py

Environment:
  PORT=8000 (default)        # Port to bind
  HOST=0.0.0.0 (default)     # Host interface
  GOOGLE_MAPS_API_KEY=...    # Required: transit matrix and places
  ORS_API_KEY=...            # Required: driving/walking/cycling matrix
  OPENAI_API_KEY=...         # Optional: intent classification (keyword fallback otherwise)
  WSGI_THREADS=8             # waitress worker threads
"""

import os

from waitress import serve
from werkzeug.middleware.proxy_fix import ProxyFix

from fairmeet.app import configure_logging, create_app
from fairmeet.config import Settings


def build_application(settings: Settings):
    application = create_app(settings)
    # Respect reverse proxy headers (X-Forwarded-*) when behind a proxy/HTTPS terminator
    if os.getenv('TRUST_PROXY_HEADERS', '1') not in ('0', 'false', 'False', 'no', 'off'):
        application.wsgi_app = ProxyFix(application.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)
    return application


def main():
    settings = Settings.from_env()
    configure_logging(settings)
    port = int(os.getenv('PORT', '8000'))

    if settings.missing_keys:
        print("\n" + "=" * 60)
        print(f"Warning: {', '.join(settings.missing_keys)} not configured.")
        print("The API will start, but meeting endpoints will answer with a configuration error.")
        print("=" * 60 + "\n")

    print(f"\nStarting Fair Meet (prod) on http://{settings.host}:{port}")
    serve(build_application(settings), host=settings.host, port=port, threads=int(os.getenv('WSGI_THREADS', '8')))


if __name__ == '__main__':
    main()
