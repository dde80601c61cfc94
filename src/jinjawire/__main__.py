"""Allow running as ``python -m jinjawire``."""

from jinjawire.cli import app

if __name__ == "__main__":
    app()
