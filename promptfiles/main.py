# promptfiles/main.py
"""Main entry point for the prompt CLI application."""

from promptfiles.cli.interface import main_cli


def entrypoint():
    """Function to be called by the script defined in pyproject.toml."""
    main_cli(prog_name="prompt")

if __name__ == '__main__':
    entrypoint()
