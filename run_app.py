#!/usr/bin/env python3
"""
Celebrity Barber Backend Runner
===============================

Usage:
    python run_app.py                    # Development mode with auto-reload
    python run_app.py --mode prod        # Production mode
    python run_app.py --memory           # In-process store, no Firebase needed
    python run_app.py --port 8001        # Custom port
    python run_app.py --host 127.0.0.1   # Custom host
"""

import argparse
import os
import sys

def print_banner():
    """Print application banner"""
    banner = """
╔═══════════════════════════════════════════════════════╗
║               ✂️  Celebrity Barber API                 ║
╚═══════════════════════════════════════════════════════╝
    """
    print(banner)

def check_environment(memory: bool) -> bool:
    """Check if environment is properly set up"""
    print("\n🔍 Checking environment...")

    if not os.path.exists(os.path.join("app", "main.py")):
        print("❌ Not in the project root. Please run from the folder holding app/.")
        return False

    if os.path.exists(".env"):
        print("✅ .env file found")
    else:
        print("⚠️  .env file not found, using defaults")

    if memory:
        print("⚠️  In-memory backend: data is lost on restart")
    elif not (os.getenv("FIREBASE_CREDENTIALS_JSON") or os.getenv("FIREBASE_CREDENTIALS_PATH")
              or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")):
        print("⚠️  No Firebase credentials in the environment, falling back to application default")

    return True

def run_main_app(host="0.0.0.0", port=8000, reload=True):
    """Run the FastAPI application"""
    print(f"\n🚀 Starting on {host}:{port}")
    print(f"📖 API Docs: http://localhost:{port}/api/docs")
    print("\n" + "="*50)

    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )

def main():
    parser = argparse.ArgumentParser(
        description="Celebrity Barber Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_app.py                      # Development server on port 8000
  python run_app.py --mode prod          # Production mode
  python run_app.py --memory --port 8001 # Local demo without Firebase
        """
    )

    parser.add_argument(
        "--mode",
        choices=["dev", "prod"],
        default="dev",
        help="Server mode (default: dev)"
    )
    parser.add_argument(
        "--host",
        help="Host to bind to (default: HOST setting)"
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to bind to (default: PORT setting)"
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload"
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Use the in-memory store instead of Firestore"
    )

    args = parser.parse_args()

    print_banner()

    if args.memory:
        os.environ["STORE_BACKEND"] = "memory"

    if not check_environment(args.memory):
        return 1

    from app.core.config import settings

    # single worker: sessions are held in process memory
    reload = not args.no_reload and args.mode != "prod"
    run_main_app(args.host or settings.HOST, args.port or settings.PORT, reload)

    return 0

if __name__ == "__main__":
    try:
        exit_code = main()
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)
