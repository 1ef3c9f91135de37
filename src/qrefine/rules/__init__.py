"""Detection rules: model, built-in catalog, and the evaluation engine."""
