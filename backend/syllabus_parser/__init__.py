"""
Syllabus Parser backend package.

It contains subpackages for:
- api: API endpoints and request handling
- core: settings and the error taxonomy
- models: pydantic data models
- services: provider selection, structured extraction, scoring, redaction
- utils: logging, prompts and the per-format extractors
- validation: upload and environment checks
"""

__version__ = "1.0.0"
