"""Phoneme review: align transcripts with word and phoneme timings for labeling."""

__version__ = "0.1.0"
