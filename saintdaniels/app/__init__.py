"""SaintDaniels application layer: session state and its wiring."""
