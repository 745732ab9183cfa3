"""
Transcript, word and phoneme alignment for the phoneme review pipeline.

This package contains modules for reconciling a transcription document:
- normalizer.py: Multi-schema extraction of text, timed words and timed phonemes
- tokenizer.py: Transcript tokenization and word normalization
- word_alignment.py: Token-to-timed-word matching
- phoneme_bucketing.py: Phoneme-to-word assignment by time overlap and IPA enrichment
"""
