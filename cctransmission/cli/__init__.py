"""Command-line interface for cctransmission."""
