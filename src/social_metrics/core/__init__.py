"""Core domain layer: records, classification, normalization and errors."""
