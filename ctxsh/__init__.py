"""ctxsh - named shell contexts with their own hooks and history"""

__version__ = "0.1.0"
