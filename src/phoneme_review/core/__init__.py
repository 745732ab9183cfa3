"""
Core review functionality.

- processor.py: single processing pass from raw document to processed words
- session.py: review session holding document, evaluations and job flow
- playback.py: word and phoneme playback through an injected audio player
"""
