"""
Lead Qualifier Test Package.

Test categories:
- test_config.py: Configuration and environment variable loading
- test_models.py: Pydantic model validation and persistence rows
- test_website_extractor.py: Website fetch and text extraction
- test_prompt_composer.py: Prompt rendering
- test_verdict_parser.py: Tolerant verdict parsing
- test_llm_client.py: Generation service calls and credential selection
- test_analysis.py: Analysis pipeline ordering and failure handling
- test_key_need.py: Keyword key-need classification
- test_store.py: Owner-scoped blob storage
- test_report_builder.py: Summary aggregation and email building
- test_report_templates.py: HTML, text and CSV rendering
- test_mailer.py: SendGrid delivery
- test_service.py: Service orchestration
- test_main.py: Command-line interface
"""

__all__ = []
