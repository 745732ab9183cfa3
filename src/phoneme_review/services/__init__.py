"""
Remote collaborators of the review session.

- api: shared aiohttp client with retrying request plumbing
- upload: presigned audio upload
- transcription: job submission and status interpretation
- polling: cancelable job status polling
"""
