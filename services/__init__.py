"""Application services built on the domain and repositories."""
