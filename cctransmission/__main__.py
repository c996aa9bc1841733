"""Allow ``python -m cctransmission``."""

from __future__ import annotations

from cctransmission.cli.main import main

if __name__ == "__main__":
    main()
