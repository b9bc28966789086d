"""creator_analytics package.

Contains modules for reading tenant-scoped member, purchase and engagement
records from MongoDB, validating them, aggregating them into dashboard
metrics (growth, revenue, churn, cohorts, engagement) and exporting or
materializing the results.

Architecture:
- Records are fetched into Dask DataFrames and validated with Pydantic
- The aggregation engine is a set of pure pandas functions
- Results are pydantic records, exported as JSON/CSV or upserted as Gold
  collections in MongoDB
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
