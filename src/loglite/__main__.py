"""Start the log viewer server: ``python -m loglite``."""

from loglite.app import run

if __name__ == "__main__":
    run()
