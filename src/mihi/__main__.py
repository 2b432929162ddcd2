"""Main entry point for mihi."""
from mihi.cli import run

if __name__ == "__main__":
    run()
