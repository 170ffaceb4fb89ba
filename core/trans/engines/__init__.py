"""Translation engine implementations.

Importing this package registers every engine with ``TransInterface.registered``.

Modules:
- GoogleGtxTranslation: Google Translate through the keyless ``client=gtx`` endpoint.
"""

from core.trans.engines.google_gtx import GoogleGtxTranslation

__all__: list[str] = ["GoogleGtxTranslation"]
