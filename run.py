#!/usr/bin/env python3
"""
DANGER WALL Launcher
=====================
Start the game from a source checkout.
"""

from danger_wall.main import main

if __name__ == "__main__":
    main()
