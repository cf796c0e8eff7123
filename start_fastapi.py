#!/usr/bin/env python3
"""
Startup script for the ordering assistant API
"""
import logging
import sys
from pathlib import Path

import uvicorn

from order_assistant.config.settings import LLM_PROVIDER, LOG_LEVEL

current_dir = Path(__file__).parent


def main():
    """Start the FastAPI application"""
    logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))
    print("🍽️ Starting ordering assistant API...")
    print("=" * 50)

    # Check if .env file exists
    env_file = current_dir / ".env"
    if not env_file.exists():
        print("⚠️  Warning: .env file not found. Using default configuration.")
        print("   Create a .env file with your API keys to enable language model replies.")
        print()
    print(f"Provider: {LLM_PROVIDER}")

    # Start the server
    try:
        uvicorn.run(
            "order_assistant.fastapi_agent:app",
            host="0.0.0.0",
            port=8000,
            reload=True,
            log_level="info",
            access_log=True
        )
    except KeyboardInterrupt:
        print("\n🛑 Server stopped by user")
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
