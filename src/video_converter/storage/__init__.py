"""Durable storage for processed-video records and the error log."""
