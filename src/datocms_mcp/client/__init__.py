"""DatoCMS Content Management API client."""

from .base import BaseClient, Page, Resource, deserialize, flatten_params, reference, serialize
from .collaborators import CollaboratorsClient
from .records import RecordsClient, editor_url
from .resources import DatoCMSClient

__all__ = [
    "BaseClient",
    "CollaboratorsClient",
    "DatoCMSClient",
    "Page",
    "RecordsClient",
    "Resource",
    "deserialize",
    "editor_url",
    "flatten_params",
    "reference",
    "serialize",
]
