from .scrubber import scrubber

__all__ = ["scrubber"]
