"""Shield: cross-app fraud signal scoring, enforcement and client SDK."""
