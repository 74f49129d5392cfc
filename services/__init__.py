"""Services package for server content comparison."""

from services.content_import import ContentImporter, ContentImportError, ImportStatus
from services.server_comparison import ServerComparison
from services.signing import ContentSigner, SignedContent, SigningError
from services.transfer import ItemTransfer

__all__ = [
    "ContentImporter",
    "ContentImportError",
    "ImportStatus",
    "ServerComparison",
    "ContentSigner",
    "SignedContent",
    "SigningError",
    "ItemTransfer",
]
