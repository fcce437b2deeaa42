"""Ingestion pipelines for web pages, uploaded videos and external media."""
