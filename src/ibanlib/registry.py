from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import yaml

from ibanlib.errors import RegistryError, UnknownCountryCodeError
from ibanlib.structure import BbanStructure, Field, parse_notation
from ibanlib.utils.paths import packaged_registry_path

log = logging.getLogger(__name__)

CHECK_DIGITS = BbanStructure((Field("n", 2),))

_CODE_RE = re.compile(r"^[A-Z]{2}$")


@dataclass(frozen=True)
class IbanPattern:
    """Literal country code, two check digits, then the BBAN structure."""

    code: str
    bban: BbanStructure

    @property
    def length(self) -> int:
        return len(self.code) + CHECK_DIGITS.length + self.bban.length

    @property
    def notation(self) -> str:
        return f"{self.code}{CHECK_DIGITS.notation}{self.bban.notation}"

    def matches(self, text: str) -> bool:
        if not isinstance(text, str) or not text.startswith(self.code):
            return False
        return (CHECK_DIGITS + self.bban).matches(text[len(self.code):])


@dataclass(frozen=True)
class CountryFormat:
    code: str
    name: str
    bban_length: int
    bank: BbanStructure
    account: BbanStructure
    prefix: Optional[BbanStructure] = None
    branch: Optional[BbanStructure] = None

    def __str__(self) -> str:
        return self.code

    @property
    def parts(self) -> Tuple[Tuple[str, Optional[BbanStructure]], ...]:
        return (
            ("prefix", self.prefix),
            ("bank", self.bank),
            ("branch", self.branch),
            ("account", self.account),
        )

    @property
    def bban_pattern(self) -> BbanStructure:
        out = BbanStructure()
        for _, part in self.parts:
            if part is not None:
                out = out + part
        return out

    @property
    def iban_pattern(self) -> IbanPattern:
        return IbanPattern(self.code, self.bban_pattern)

    def has_bban_prefix(self) -> bool:
        return self.prefix is not None

    def has_branch_identifier(self) -> bool:
        return self.branch is not None

    def slice_bban(self, bban: str) -> Dict[str, Optional[str]]:
        """Split a valid BBAN into prefix/bank/branch/account pieces."""
        out: Dict[str, Optional[str]] = {}
        pos = 0
        for key, part in self.parts:
            if part is None:
                out[key] = None
                continue
            out[key] = bban[pos:pos + part.length]
            pos += part.length
        return out


def _build_entry(code: Any, raw: Any, source: str) -> CountryFormat:
    if not isinstance(code, str) or not _CODE_RE.match(code):
        raise RegistryError(f"{source}: invalid country key {code!r}, expected two upper case letters")
    if not isinstance(raw, dict):
        raise RegistryError(f"{source}: entry {code} must be a mapping")

    bban_length = raw.get("bban_length")
    if isinstance(bban_length, bool) or not isinstance(bban_length, int) or bban_length <= 0:
        raise RegistryError(f"{source}: entry {code} needs a positive integer bban_length, got {bban_length!r}")

    parts: Dict[str, Optional[BbanStructure]] = {}
    for key in ("prefix", "bank", "branch", "account"):
        notation = raw.get(key)
        if notation is None:
            if key in ("bank", "account"):
                raise RegistryError(f"{source}: entry {code} is missing the {key} field")
            parts[key] = None
            continue
        try:
            parts[key] = parse_notation(str(notation))
        except ValueError as exc:
            raise RegistryError(f"{source}: entry {code}, field {key}: {exc}") from exc

    entry = CountryFormat(
        code=code,
        name=str(raw.get("name") or code),
        bban_length=bban_length,
        bank=parts["bank"],
        account=parts["account"],
        prefix=parts["prefix"],
        branch=parts["branch"],
    )
    if entry.bban_pattern.length != entry.bban_length:
        raise RegistryError(
            f"{source}: entry {code} declares bban_length {entry.bban_length} "
            f"but its fields {entry.bban_pattern.notation} cover {entry.bban_pattern.length}"
        )
    return entry


class CountryRegistry:
    """Immutable code -> CountryFormat mapping."""

    def __init__(self, entries: Mapping[str, CountryFormat], source: str = "<memory>"):
        self._entries = MappingProxyType(dict(sorted(entries.items())))
        self.source = source

    def lookup(self, identifier: Any) -> CountryFormat:
        if isinstance(identifier, CountryFormat):
            identifier = identifier.code
        if not isinstance(identifier, str):
            raise UnknownCountryCodeError(identifier)
        try:
            return self._entries[identifier]
        except KeyError:
            raise UnknownCountryCodeError(identifier) from None

    def codes(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def countries(self) -> Tuple[CountryFormat, ...]:
        return tuple(self._entries.values())

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._entries

    def __iter__(self) -> Iterator[CountryFormat]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CountryRegistry({len(self)} countries from {self.source})"


def registry_from_mapping(data: Any, source: str = "<memory>") -> CountryRegistry:
    if not isinstance(data, dict) or not data:
        raise RegistryError(f"{source}: registry data must be a non-empty mapping")
    entries = {}
    for code, raw in data.items():
        entry = _build_entry(code, raw, source)
        entries[entry.code] = entry
    return CountryRegistry(entries, source=source)


def load_registry(path: Path) -> CountryRegistry:
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise RegistryError(f"Cannot read IBAN registry {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise RegistryError(f"Cannot parse IBAN registry {path}: {exc}") from exc
    reg = registry_from_mapping(data, source=str(path))
    log.info("IBAN registry loaded: %d countries from %s", len(reg), path)
    return reg


_DEFAULT_REGISTRY: Optional[CountryRegistry] = None
_DEFAULT_REGISTRY_LOCK = threading.Lock()


def default_registry() -> CountryRegistry:
    """Registry built from the packaged data, loaded once per process."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        with _DEFAULT_REGISTRY_LOCK:
            if _DEFAULT_REGISTRY is None:
                _DEFAULT_REGISTRY = load_registry(packaged_registry_path())
    return _DEFAULT_REGISTRY


def lookup(identifier: Any, registry: Optional[CountryRegistry] = None) -> CountryFormat:
    return (registry if registry is not None else default_registry()).lookup(identifier)


def countries(registry: Optional[CountryRegistry] = None) -> Tuple[CountryFormat, ...]:
    return (registry if registry is not None else default_registry()).countries()
