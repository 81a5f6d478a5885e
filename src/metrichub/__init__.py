"""MetricHub - metric normalization and marketing funnel analytics."""

__version__ = "0.1.0"
