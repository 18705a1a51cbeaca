"""
CutDeck - non-destructive editing core for a video timeline editor.
"""
__version__ = "0.1.0"
