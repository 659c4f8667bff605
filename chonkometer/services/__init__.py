"""
Package services - Glue giua core va CLI.

- settings_manager: Load/save ~/.chonkometer/settings.json
- encoder_registry: Vocabulary + tokenizer singleton (load mot lan)
- report_service: Render text/JSON report
"""
