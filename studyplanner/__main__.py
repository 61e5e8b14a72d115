"""
Package entry point.

Allows running the application via:

    python -m studyplanner

This simply forwards execution to studyplanner.cli.main().
"""

from studyplanner.cli import main

if __name__ == "__main__":
    main()
