"""SubTrack — local subscription and recurring expense tracker."""

__version__ = "0.1.0"
