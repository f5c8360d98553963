"""Pure document rewrites applied before content is pushed.

* :mod:`~specsync.transform.transformer` -- vendor-extension stripping,
  proxy-route expansion and server ``basePath`` collapse, plus the
  serialisation and fingerprint helpers.
* :mod:`~specsync.transform.environments` -- optional multi-environment
  ``servers`` rewrite.
"""

from specsync.transform.environments import enrich_servers
from specsync.transform.transformer import fingerprint, serialize_document, transform_document

__all__ = ["enrich_servers", "fingerprint", "serialize_document", "transform_document"]
