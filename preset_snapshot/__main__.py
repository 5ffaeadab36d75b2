"""Entry point for python -m preset_snapshot."""

from preset_snapshot.cli import app

if __name__ == "__main__":
    app()
