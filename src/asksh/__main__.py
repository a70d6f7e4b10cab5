"""Entry point for ``python -m asksh``."""

from asksh.cli import app

if __name__ == "__main__":
    app()
