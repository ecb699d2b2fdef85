"""Convenience entry point to run the VaultBox CLI.

Allows starting the application with `python main.py <command>` from the project root.
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the src/ directory is on sys.path so `import vaultbox` works
ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from vaultbox.frontend.cli.app import main as cli_main


def main() -> None:
    """Run the VaultBox command-line application."""
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
