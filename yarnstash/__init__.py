"""
YarnStash - yarn inventory backend.

Backup and export pipeline for a personal craft inventory: Google Drive
backups with retention, a merged activity feed for the dashboard, and
JSON/CSV/text exports.
"""

__version__ = "1.0.0"
