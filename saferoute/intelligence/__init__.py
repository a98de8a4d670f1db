"""
Public-safety intelligence enrichment.

Components:
- prompt: analyst prompt template and structural summaries
- client: HTTP gateway to the text-generation service
- parser: code-fence stripping and schema validation
- enricher: flag mapping, deterministic fallback, IntelligenceEnricher
"""
