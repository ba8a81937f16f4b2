"""Page editor server: serves and edits HTML/CSS/JS page triples."""

__version__ = "0.1.0"
