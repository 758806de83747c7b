#!/usr/bin/env python3
"""
Banking API Entry Point

Starts the FastAPI server with an empty in-memory user registry.
"""

import sys

from banking_api.api import run_server
from banking_api.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("🏦 Starting Banking API...")
    print("💰 All balance calculations use Decimal precision")
    print("⚠️  State is kept in memory and lost on restart")
    print(f"🌐 API available at: http://localhost:{config.api_port}/api/users")
    print(f"📚 Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\n👋 Shutting down Banking API...")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)
