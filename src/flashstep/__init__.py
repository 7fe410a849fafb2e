"""flashstep: step-based spaced repetition scheduling and phase batching."""

__version__ = "0.1.0"
