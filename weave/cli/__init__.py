"""Command-line tools for Weave.

- ``python -m weave.cli ingest <url-or-text>``: smart ingest into the local store
- ``python -m weave.cli file <path>``: upload a local PDF, image or text file
- ``python -m weave.cli extract <path-or-url>``: print extracted text only
"""
