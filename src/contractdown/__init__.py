from contractdown.api.binder import BoundRoute, HandlerBinder
from contractdown.api.envelope import ResultEnvelope
from contractdown.api.registry import (
    Descriptor,
    DescriptorRegistry,
    registry_from_endpoints,
    signature_key,
)
from contractdown.core.errors import BindingError, ContractExtractionError
from contractdown.core.extract import (
    extract_contracts,
    extract_endpoints,
    extract_types,
    load_document,
    parse_document,
)
from contractdown.core.sections import build_section_tree
from contractdown.models import (
    EndpointDescriptor,
    HeadingEvent,
    ParsedDocument,
    Schema,
    Section,
    TypeSchema,
    Verb,
)

__all__ = [
    "BindingError",
    "BoundRoute",
    "ContractExtractionError",
    "Descriptor",
    "DescriptorRegistry",
    "EndpointDescriptor",
    "HandlerBinder",
    "HeadingEvent",
    "ParsedDocument",
    "ResultEnvelope",
    "Schema",
    "Section",
    "TypeSchema",
    "Verb",
    "build_section_tree",
    "extract_contracts",
    "extract_endpoints",
    "extract_types",
    "load_document",
    "parse_document",
    "registry_from_endpoints",
    "signature_key",
]
