"""Utility modules for cctransmission."""
