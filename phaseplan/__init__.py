"""Phase planning and capacity aggregation service."""
