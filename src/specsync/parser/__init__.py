"""Input document loading.

Typical usage::

    from specsync.parser import load_document

    raw = load_document("openapi.json")
"""

from specsync.parser.loader import MAX_DOCUMENT_BYTES, load_document, spec_type_for

__all__ = ["MAX_DOCUMENT_BYTES", "load_document", "spec_type_for"]
