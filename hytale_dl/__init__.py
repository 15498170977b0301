"""Command-line downloader for Hytale game assets."""

# "dev" marks an unreleased build and disables the update check
__version__ = "1.0.0"
