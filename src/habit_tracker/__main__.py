"""
Package entry point for python -m execution.

USAGE:
    python -m habit_tracker           # Serve API + tracker page
    python -m habit_tracker serve     # Serve API + tracker page
    python -m habit_tracker report    # Print yearly report
"""

from habit_tracker.cli import main

if __name__ == "__main__":
    main()
