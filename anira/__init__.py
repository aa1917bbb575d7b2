"""Real-time neural network inference scheduling for audio processing."""

__version__ = "0.1.0"