"""Validation of fetched rows before aggregation.

Rows that do not match the input schemas are dropped and counted so that the
aggregation engine only ever sees schema-valid records.
"""
