"""Command line for snapshots and change detection of relational sources."""
