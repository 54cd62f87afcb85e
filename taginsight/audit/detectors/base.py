"""Vendor definitions and the registry used for tracking-request detection.

This module defines the static description of every supported tracking vendor
(domains, path/query signatures, event taxonomy and where its identifiers
live) and an ordered, immutable registry over them. Detection order matters:
vendors sharing infrastructure are disambiguated by the first definition whose
signature matches, so the registry preserves declaration order.
"""

import re
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import compile_pattern


class VendorRegistryError(ValueError):
    """Raised when a vendor registry is built from inconsistent definitions."""
    pass


class VendorDefinition(BaseModel):
    """Static description of one tracking vendor."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Vendor identity key (meta, ga4, ...)")
    name: str = Field(description="Display name of the solution")
    domains: Tuple[str, ...] = Field(description="Domain suffixes matched as case-insensitive substrings")
    path_pattern: Optional[str] = Field(
        default=None,
        description="Regex the URL path must match when the domain matches"
    )
    query_pattern: Optional[str] = Field(
        default=None,
        description="Alternative regex on the raw query string (requires path_pattern)"
    )
    event_types: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Known event names for this vendor"
    )
    event_name_params: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Parameters carrying the event name, in priority order"
    )
    default_event_name: str = Field(
        default="unknown",
        description="Event name used when no name parameter is present"
    )
    conversion_params: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Parameters whose presence marks a conversion hit"
    )
    conversion_event_name: Optional[str] = Field(
        default=None,
        description="Event name assigned to conversion hits"
    )
    pixel_id_params: Tuple[str, ...] = Field(
        default_factory=tuple,
        description="Parameters carrying the tracking/pixel ID, in priority order"
    )
    pixel_id_path_pattern: Optional[str] = Field(
        default=None,
        description="Regex with one group extracting the tracking ID from the URL path"
    )
    custom_data_param: Optional[str] = Field(
        default=None,
        description="Parameter carrying a percent-encoded JSON data blob"
    )

    @field_validator("key")
    @classmethod
    def validate_key(cls, v):
        """Vendor keys are lowercase identifiers."""
        if not v or not re.match(r"^[a-z][a-z0-9_]*$", v):
            raise ValueError(f"Invalid vendor key: {v!r}")
        return v

    @field_validator("domains")
    @classmethod
    def validate_domains(cls, v):
        """At least one domain is required; domains are stored lowercase."""
        if not v:
            raise ValueError("A vendor needs at least one domain")
        return tuple(d.lower() for d in v)

    @field_validator("path_pattern", "query_pattern", "pixel_id_path_pattern")
    @classmethod
    def validate_pattern(cls, v):
        """Patterns must be valid regular expressions."""
        if v is not None and compile_pattern(v, re.IGNORECASE) is None:
            raise ValueError(f"Invalid regex pattern: {v}")
        return v

    @model_validator(mode="after")
    def validate_signature(self):
        """A query pattern only refines a path pattern; it never stands alone."""
        if self.query_pattern and not self.path_pattern:
            raise ValueError(f"Vendor '{self.key}' declares a query pattern without a path pattern")
        if self.conversion_params and not self.conversion_event_name:
            raise ValueError(f"Vendor '{self.key}' declares conversion params without a conversion event name")
        return self

    def matches_domain(self, domain: str) -> bool:
        """Case-insensitive substring match against any vendor domain."""
        lowered = (domain or "").lower()
        return any(d in lowered for d in self.domains)

    def matches_path(self, path: str) -> bool:
        """Check the URL path against the vendor's path pattern."""
        if not self.path_pattern:
            return True
        pattern = compile_pattern(self.path_pattern, re.IGNORECASE)
        return pattern is not None and pattern.search(path or "") is not None

    def matches_query(self, raw_query: str) -> bool:
        """Check the raw query string against the vendor's query pattern."""
        if not self.query_pattern:
            return False
        pattern = compile_pattern(self.query_pattern, re.IGNORECASE)
        return pattern is not None and pattern.search(raw_query or "") is not None


class VendorRegistry:
    """Ordered, immutable collection of vendor definitions."""

    def __init__(self, vendors: Iterable[VendorDefinition]):
        vendors = tuple(vendors)
        seen: Dict[str, VendorDefinition] = {}
        for vendor in vendors:
            if vendor.key in seen:
                raise VendorRegistryError(f"Duplicate vendor key: {vendor.key}")
            seen[vendor.key] = vendor

        self._vendors: Tuple[VendorDefinition, ...] = vendors
        self._by_key: Dict[str, VendorDefinition] = seen

    def __iter__(self) -> Iterator[VendorDefinition]:
        return iter(self._vendors)

    def __len__(self) -> int:
        return len(self._vendors)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Optional[VendorDefinition]:
        """Get a vendor definition by key."""
        return self._by_key.get(key)

    def keys(self) -> List[str]:
        """Vendor keys in detection order."""
        return [vendor.key for vendor in self._vendors]

    def restrict(self, keys: Iterable[str]) -> "VendorRegistry":
        """Return a registry limited to the given keys, preserving detection order.

        Args:
            keys: Vendor keys to keep (an empty iterable keeps every vendor)

        Raises:
            VendorRegistryError: If a key is not part of this registry
        """
        wanted = list(keys)
        if not wanted:
            return self

        unknown = [key for key in wanted if key not in self._by_key]
        if unknown:
            raise VendorRegistryError(f"Unknown vendor key(s): {', '.join(unknown)}")

        return VendorRegistry(v for v in self._vendors if v.key in wanted)


DEFAULT_VENDORS: Tuple[VendorDefinition, ...] = (
    VendorDefinition(
        key="meta",
        name="Facebook Pixel",
        domains=("facebook.com", "facebook.net", "fbcdn.net"),
        # Pixel events always hit the /tr endpoint
        path_pattern=r"^/tr/?$",
        event_types=("PageView", "ViewContent", "AddToCart", "InitiateCheckout",
                     "Purchase", "Lead", "CompleteRegistration", "Search"),
        event_name_params=("ev",),
        default_event_name="PageView",
        pixel_id_params=("id",),
        custom_data_param="cd",
    ),
    VendorDefinition(
        key="ga4",
        name="Google Analytics 4",
        domains=("google-analytics.com", "analytics.google.com", "stats.g.doubleclick.net"),
        path_pattern=r"/(?:g|mp)/collect",
        query_pattern=r"(?:^|&)tid=G-",
        event_types=("page_view", "view_item", "add_to_cart", "begin_checkout",
                     "purchase", "sign_up", "login", "search"),
        event_name_params=("en", "t"),
        default_event_name="page_view",
        pixel_id_params=("tid", "measurement_id"),
    ),
    VendorDefinition(
        key="gtm",
        name="Google Tag Manager",
        domains=("googletagmanager.com",),
        path_pattern=r"/gtm\.js|/gtag/js",
        event_types=("container_load",),
        default_event_name="container_load",
        pixel_id_params=("id",),
    ),
    VendorDefinition(
        key="gads",
        name="Google Ads",
        domains=("doubleclick.net", "googlesyndication.com", "googleadservices.com", "google.com"),
        path_pattern=r"/pagead/|/viewthroughconversion/|/ccm/collect|/conversion/|/rmkt/collect",
        query_pattern=r"(?:^|&)(?:label|google_conversion_id|aw_conversion_id)=",
        event_types=("conversion", "remarketing", "page_view"),
        default_event_name="remarketing",
        conversion_params=("label",),
        conversion_event_name="conversion",
        pixel_id_params=("google_conversion_id", "aw_conversion_id"),
        pixel_id_path_pattern=r"/(?:viewthroughconversion|conversion|1p-conversion)/(\d+)",
    ),
    VendorDefinition(
        key="tiktok",
        name="TikTok Pixel",
        domains=("tiktok.com", "analytics.tiktok.com"),
        event_types=("PageView", "ViewContent", "AddToCart", "InitiateCheckout", "CompletePayment"),
        event_name_params=("event",),
        default_event_name="PageView",
        pixel_id_params=("sdkid", "pixel_code"),
        custom_data_param="properties",
    ),
    VendorDefinition(
        key="linkedin",
        name="LinkedIn Insight",
        domains=("linkedin.com", "snap.licdn.com"),
        event_types=("page_view", "conversion"),
        default_event_name="page_view",
        conversion_params=("conversion_id", "conversionId"),
        conversion_event_name="conversion",
        pixel_id_params=("pid",),
    ),
    VendorDefinition(
        key="hotjar",
        name="Hotjar",
        domains=("hotjar.com", "hotjar.io"),
        event_types=("session_recording", "heatmap"),
        default_event_name="recording",
        pixel_id_params=("hjid", "sv"),
    ),
    VendorDefinition(
        key="criteo",
        name="Criteo",
        domains=("criteo.com", "criteo.net"),
        event_types=("viewHome", "viewItem", "viewBasket", "trackTransaction"),
        event_name_params=("p",),
        default_event_name="viewPage",
        pixel_id_params=("a",),
    ),
)


default_registry = VendorRegistry(DEFAULT_VENDORS)
