"""Tag Insight: marketing-tracking implementation auditing."""

__version__ = "0.1.0"
