"""Dashboard aggregation helpers.

This package contains the pure functions that convert tenant-scoped member,
purchase and engagement rows into dashboard records (KPI summary, daily
series, product rollups, churn and cohort tables, engagement score), plus the
loader that materializes them as Gold collections in MongoDB.
"""
