"""HTTP surface for the interview session service."""
