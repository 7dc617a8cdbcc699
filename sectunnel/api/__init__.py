"""Read-only HTTP API over live tunnel sessions."""
