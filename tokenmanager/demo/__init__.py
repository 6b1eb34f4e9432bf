"""Demo package for the token manager."""
