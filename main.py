"""
Review Reply Drafter - Web Server Entry Point
=============================================

Run this to start the reply drafting API:
    python main.py

Then open http://127.0.0.1:8000 for the playground page.

To draft replies from the terminal:
    python generate_replies.py --name "Sarah M." --rating 5 --text "Great staff!"
"""

import sys
from pathlib import Path

import uvicorn

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from src.infrastructure.config import get_settings


def main():
    """Start the web server."""
    settings = get_settings()

    print("\n" + "=" * 50)
    print("   Review Reply Drafter - API")
    print("=" * 50)
    print(f"\n   Starting server at http://{settings.web.host}:{settings.web.port}")
    for issue in settings.validate():
        print(f"   {issue}")
    print("   Press Ctrl+C to stop\n")

    uvicorn.run(
        "src.web.app:app",
        host=settings.web.host,
        port=settings.web.port,
        reload=settings.web.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
