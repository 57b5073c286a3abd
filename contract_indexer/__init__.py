"""Bootstrap sequencer for a long-running contract event indexer."""

__version__ = "1.0.0"
