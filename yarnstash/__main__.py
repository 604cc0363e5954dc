"""
Package entry point for YarnStash.
"""
import asyncio
import sys


def run_main():
    """Run the API server until interrupted."""
    from .main import main

    print("=== Starting YarnStash ===", flush=True, file=sys.stderr)
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Shutting down", flush=True, file=sys.stderr)


if __name__ == "__main__":
    run_main()
