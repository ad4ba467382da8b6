"""Course catalogue pipeline: export records -> course JSON, programme categories and the aggregate CSV."""

__version__ = "0.1.0"
