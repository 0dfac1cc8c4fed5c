#!/usr/bin/env python3
"""
cinelaunch - Main entry point
Search a movie or show, pick a stream and watch it in VLC.
"""
import sys

try:
    from cinelaunch.cli import main
except ImportError as e:
    print(f"Error: Failed to import cinelaunch package. {e}")
    print("Make sure you have installed the package correctly:")
    print("  pip install -e .")
    sys.exit(1)

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(0)
    except Exception as e:
        print(f"Fatal error: {e}")
        sys.exit(1)
