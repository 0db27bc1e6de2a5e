"""Command-line interface for irssi-varlink."""
