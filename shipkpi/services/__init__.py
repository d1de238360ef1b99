"""Pipeline stages, views and the dashboard session."""
