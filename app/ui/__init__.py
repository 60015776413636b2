"""Streamlit-facing helpers: API client, client-side cache and view helpers."""
