# MISP Bridge: Gateway Client Package
#
# Transport adapter, typed gateway client, error taxonomy and the
# request-scoped data models it returns.

from .exceptions import (
    Forbidden,
    HTTPStatusFailure,
    InvalidRequest,
    MalformedResponse,
    MethodNotAllowed,
    MispError,
    MispTimeout,
    NotFound,
    RemoteError,
    TransportFailure,
    Unauthorized,
)
from .gateway import EXPORT_ENDPOINTS, HASH_FORMATS, MispClient
from .models import (
    Analysis,
    Attribute,
    Distribution,
    Event,
    EventRef,
    Galaxy,
    MispObject,
    RelatedAttribute,
    Sighting,
    SightingType,
    Tag,
    Taxonomy,
    ThreatLevel,
    TypeCatalog,
    WarninglistMatch,
)
from .transport import HttpTransport, TransportResponse

__all__ = [
    # Client
    "MispClient",
    "HttpTransport",
    "TransportResponse",
    "EXPORT_ENDPOINTS",
    "HASH_FORMATS",
    # Errors
    "MispError",
    "HTTPStatusFailure",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "MethodNotAllowed",
    "RemoteError",
    "MispTimeout",
    "TransportFailure",
    "MalformedResponse",
    "InvalidRequest",
    # Models
    "Event",
    "Attribute",
    "RelatedAttribute",
    "MispObject",
    "Galaxy",
    "EventRef",
    "Tag",
    "Sighting",
    "WarninglistMatch",
    "Taxonomy",
    "TypeCatalog",
    "ThreatLevel",
    "Analysis",
    "Distribution",
    "SightingType",
]
