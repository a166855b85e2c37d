#!/usr/bin/env python3
"""
Temple Tax Engine - Development Server Runner
This script sets up the Python path and starts the API server
"""

import sys
import os

# Add the 'src' directory to Python path so imports work without installing
project_root = os.path.dirname(os.path.abspath(__file__))
src_path = os.path.join(project_root, 'src')

if src_path not in sys.path:
    sys.path.insert(0, src_path)


if __name__ == "__main__":
    import uvicorn

    from temple_tax.config.settings import get_settings

    settings = get_settings()

    print("=" * 50)
    print(f"{settings.name} - Development Server")
    print("=" * 50)
    print(f"Starting server on http://{settings.api_host}:{settings.api_port}")
    print("Press Ctrl+C to stop")
    print()

    uvicorn.run(
        "temple_tax.web.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        reload_dirs=[src_path],
        log_level=settings.log_level.lower(),
    )
