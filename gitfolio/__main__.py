"""Main entry point when executing gitfolio as a package.

This allows running the package using python -m gitfolio.
"""

from gitfolio.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
