"""Application release metadata: the current version, download link and notes."""
