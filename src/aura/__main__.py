"""Entry point for running Aura as a module.

Usage:
    python -m aura [command] [options]

Example:
    python -m aura settings show
    python -m aura analyze --input-type image --design-data "Login screen" --level epic
"""

from aura.cli import app

if __name__ == "__main__":
    app()
