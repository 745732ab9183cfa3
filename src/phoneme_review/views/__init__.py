"""
Derived views over processed words.

- evaluation: evaluation store, verdict bookkeeping and statistics
- filtering: phoneme filter, word selection and per-symbol counts
- export: evaluation export payload and IPA transcription
- formatting: time and tooltip formatting
- samples: reference sample sentences
"""
