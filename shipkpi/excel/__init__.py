"""Workbook ingestion, cell normalization, column layout and export."""
