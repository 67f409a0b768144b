from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from contractdown.core.errors import BindingError
from contractdown.models import EndpointDescriptor


@dataclass(frozen=True)
class Descriptor:
    """How a handler is exposed over the wire: route ``/{name}`` answering ``verb``."""

    name: str
    verb: str


def signature_key(handler: Callable[..., Any]) -> str:
    module = getattr(handler, "__module__", None)
    qualname = getattr(handler, "__qualname__", None)
    if module is None or qualname is None:
        raise BindingError(f"Cannot derive a signature key for {handler!r}")
    return f"{module}:{qualname}"


class DescriptorRegistry:
    """Mapping from handlers to the descriptors that expose them.

    Entries come from two places. Descriptor JSON is keyed by handler
    signature key; explicit pairings (``pair``) are keyed by the handler
    object itself, so handlers sharing a qualname, such as closures built by
    one factory, still resolve to their own descriptor. Entries are added
    while the service is being set up; binders only look them up.
    """

    def __init__(self, entries: Mapping[str, Descriptor] | None = None) -> None:
        self._entries: dict[str, Descriptor] = dict(entries or {})
        self._owners: dict[str, Callable[..., Any]] = {}
        self._paired: dict[int, tuple[Callable[..., Any], Descriptor]] = {}

    def register(self, handler: Callable[..., Any] | str, descriptor: Descriptor) -> None:
        """Key ``descriptor`` by the handler's signature key.

        Raises ``BindingError`` when the key is already taken by another
        handler or another descriptor.
        """
        owner = None if isinstance(handler, str) else handler
        key = handler if isinstance(handler, str) else signature_key(handler)
        existing = self._entries.get(key)
        if existing is not None:
            previous = self._owners.get(key)
            if existing != descriptor or (owner is not None and previous is not None and previous is not owner):
                raise BindingError(
                    f"Signature key {key} is already registered for {existing.verb} /{existing.name}"
                )
        self._entries[key] = descriptor
        if owner is not None:
            self._owners[key] = owner

    def pair(self, handler: Callable[..., Any], descriptor: Descriptor) -> None:
        """Tie ``descriptor`` to this exact handler object."""
        paired = self._paired.get(id(handler))
        if paired is not None and paired[1] != descriptor:
            raise BindingError(
                f"Handler {signature_key(handler)} is already paired with {paired[1].verb} /{paired[1].name}"
            )
        self._paired[id(handler)] = (handler, descriptor)

    def lookup(self, handler: Callable[..., Any]) -> Descriptor | None:
        paired = self._paired.get(id(handler))
        if paired is not None and paired[0] is handler:
            return paired[1]
        return self._entries.get(signature_key(handler))

    def descriptors(self) -> list[Descriptor]:
        return list(self._entries.values()) + [d for _, d in self._paired.values()]

    def __contains__(self, key: object) -> bool:
        return key in self._entries or any(signature_key(h) == key for h, _ in self._paired.values())

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries) + len(self._paired)

    def to_json(self) -> dict[str, dict[str, str]]:
        """Descriptor JSON keyed by signature key.

        Paired handlers that share a signature key cannot be told apart in
        this form and raise ``BindingError``.
        """
        data = {key: asdict(desc) for key, desc in self._entries.items()}
        for handler, desc in self._paired.values():
            key = signature_key(handler)
            if key in data and data[key] != asdict(desc):
                raise BindingError(f"Handlers sharing signature key {key} cannot be written as descriptor JSON")
            data[key] = asdict(desc)
        return data

    @classmethod
    def from_descriptors(cls, data: Mapping[str, Mapping[str, str]]) -> DescriptorRegistry:
        entries: dict[str, Descriptor] = {}
        for key, value in data.items():
            try:
                entries[key] = Descriptor(name=str(value["name"]), verb=str(value["verb"]))
            except (KeyError, TypeError) as exc:
                raise ValueError(f"Malformed descriptor for '{key}': {value!r}") from exc
        return cls(entries)

    @classmethod
    def load(cls, path: str | Path) -> DescriptorRegistry:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Descriptor file {path} must contain a JSON object")
        return cls.from_descriptors(data)


def descriptors_from_endpoints(endpoints: Iterable[EndpointDescriptor]) -> list[Descriptor]:
    return [Descriptor(name=e.name, verb=e.verb.value) for e in endpoints]


def registry_from_endpoints(
    endpoints: Iterable[EndpointDescriptor],
    handlers: Mapping[str, Callable[..., Any]],
) -> DescriptorRegistry:
    """Pair each handler object with the extracted endpoint of the same name."""
    by_name = {d.name: d for d in descriptors_from_endpoints(endpoints)}
    registry = DescriptorRegistry()
    for name, handler in handlers.items():
        descriptor = by_name.get(name)
        if descriptor is None:
            raise BindingError(f"No endpoint named '{name}' in the contract document")
        registry.pair(handler, descriptor)
    return registry


def check_against_endpoints(registry: DescriptorRegistry, endpoints: Iterable[EndpointDescriptor]) -> None:
    """Fail when a descriptor names a route the contract document does not declare."""
    declared = set(descriptors_from_endpoints(endpoints))
    for descriptor in registry.descriptors():
        if descriptor not in declared:
            raise BindingError(
                f"Descriptor {descriptor.verb} /{descriptor.name} is not declared in the contract document"
            )
