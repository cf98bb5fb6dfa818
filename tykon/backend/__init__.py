"""Backend package - renders the declaration model as Kotlin/JS externals."""
