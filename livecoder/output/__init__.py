"""File output for committed artifacts."""

from livecoder.output.writer import ProjectWriter, sanitise_filepath

__all__ = ["ProjectWriter", "sanitise_filepath"]
