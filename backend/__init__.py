"""HTTP backend for the fetch-questions service."""
