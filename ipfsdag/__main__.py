"""Entry point for ``python -m ipfsdag``."""

from __future__ import annotations

from ipfsdag.cli.main import main

if __name__ == "__main__":
    main()
