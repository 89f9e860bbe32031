"""Jest test explorer: discovery, incremental test trees and result reconciliation."""

__version__ = "0.1.0"
