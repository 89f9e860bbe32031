"""Testing subsystem: Jest discovery, static parsing, execution and result reconciliation."""
