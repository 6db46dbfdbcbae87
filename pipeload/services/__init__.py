"""Run-level services: file pipelines, orchestration, progress, summary, sanitize."""
