from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union


class PublisherRestrictionType(Enum):
    """Legal basis a publisher imposes on vendors for one purpose."""

    NotAllowed = 0
    RequireConsent = 1
    RequireLegitimateInterest = 2
    Undefined = 3

    @classmethod
    def from_code(cls, code: int) -> "PublisherRestrictionType":
        """Map a 2-bit wire code, falling back to ``Undefined``."""
        try:
            return cls(code)
        except ValueError:
            return cls.Undefined


@dataclass(frozen=True)
class VendorSet:
    """V1 vendor block.

    :ivar is_blocklist: ``True`` when ``list`` names vendors *without* consent.
    :type is_blocklist: bool
    :ivar list: Ascending vendor ids.
    :type list: Tuple[int, ...]
    """

    is_blocklist: bool
    list: Tuple[int, ...] = ()


@dataclass(frozen=True)
class PublisherRestriction:
    """One publisher restriction on a purpose.

    :ivar purpose_id: Purpose the restriction applies to.
    :type purpose_id: int
    :ivar restriction_type: Legal basis imposed on the listed vendors.
    :type restriction_type: PublisherRestrictionType
    :ivar vendor_list: Ascending ids of the restricted vendors.
    :type vendor_list: Tuple[int, ...]
    """

    purpose_id: int
    restriction_type: PublisherRestrictionType
    vendor_list: Tuple[int, ...] = ()


def _jsonable(value: Any) -> Any:
    """Convert enums to their names and tuples to lists, recursively."""
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class ConsentV1:
    """Decoded TCF v1.1 consent string.

    ``created_at`` and ``updated_at`` are the raw 36-bit values as encoded
    (deciseconds since the epoch).
    """

    created_at: int
    updated_at: int
    cmp_id: int
    cmp_version: int
    consent_screen: int
    consent_language: str
    vendor_list_version: int
    purposes_consent: Tuple[int, ...]
    vendors: VendorSet

    version = 1

    def to_dict(self) -> Dict[str, Any]:
        """Plain ``dict`` view of the record, suitable for ``json.dumps``.

        :returns: Field mapping with a leading ``"version"`` key.
        :rtype: Dict[str, Any]
        """
        return {"version": self.version, **_jsonable(asdict(self))}


@dataclass(frozen=True)
class ConsentV2:
    """Decoded TCF v2 consent string.

    ``created_at`` and ``updated_at`` are scaled to milliseconds. Fields fed
    by optional segments are empty when the segment was absent.
    """

    created_at: int
    updated_at: int
    cmp_id: int
    cmp_version: int
    consent_screen: int
    consent_language: str
    vendor_list_version: int
    tcf_policy_version: int
    is_service_specific: bool
    use_non_standard_stacks: bool
    special_feature_opt_ins: Tuple[int, ...]
    purposes_consent: Tuple[int, ...]
    purposes_li_transparency: Tuple[int, ...]
    purpose_one_treatment: bool
    publisher_country_code: str
    vendor_consents: Tuple[int, ...]
    vendor_li_consents: Tuple[int, ...]
    publisher_restrictions: Tuple[PublisherRestriction, ...] = ()
    disclosed_vendors: Tuple[int, ...] = ()
    allowed_vendors: Tuple[int, ...] = ()
    publisher_purposes_consent: Tuple[int, ...] = ()
    publisher_purposes_li_transparency: Tuple[int, ...] = ()
    custom_purposes_consent: Tuple[int, ...] = ()
    custom_purposes_li_transparency: Tuple[int, ...] = ()

    version = 2

    def to_dict(self) -> Dict[str, Any]:
        """Plain ``dict`` view of the record, suitable for ``json.dumps``.

        :returns: Field mapping with a leading ``"version"`` key.
        :rtype: Dict[str, Any]
        """
        return {"version": self.version, **_jsonable(asdict(self))}


ConsentRecord = Union[ConsentV1, ConsentV2]


class SectionKind(Enum):
    """Which core section a :class:`RangeSection` was decoded as."""

    VENDOR = "vendor"
    VENDOR_LEGITIMATE_INTEREST = "vendor_legitimate_interest"
    PUBLISHER_RESTRICTION = "publisher_restriction"


class RangeSection(NamedTuple):
    """Decoded section plus the bit offset right after it."""

    last_bit: int
    kind: SectionKind
    value: tuple


@dataclass(frozen=True)
class PublisherTC:
    """Purpose sets carried by the publisher purposes segment.

    The custom purpose tuples stay empty when the segment declares no
    custom purposes.
    """

    publisher_purposes_consent: Tuple[int, ...] = ()
    publisher_purposes_li_transparency: Tuple[int, ...] = ()
    custom_purposes_consent: Tuple[int, ...] = ()
    custom_purposes_li_transparency: Tuple[int, ...] = ()


@dataclass
class TCSegment:
    """Optional segment payloads collected before merging into a record."""

    disclosed_vendors: Optional[Tuple[int, ...]] = None
    allowed_vendors: Optional[Tuple[int, ...]] = None
    publisher_tc: Optional[PublisherTC] = None
