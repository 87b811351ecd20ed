"""Static content payloads rendered by the legal-analysis and preview services."""
