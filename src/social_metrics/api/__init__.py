"""HTTP layer: job submission, job status and synchronous lookups."""
