"""Shadow DOM flattening."""

from .service import (
    IdentityAllocator,
    IdentityGenerator,
    ShadowDomFlattener,
    default_identity_generator,
    discover_hosts,
    flatten_shadow_dom,
)
from .styles import StyleRewrite, host_attribute_selector, rewrite_host_selectors

__all__ = [
    "IdentityAllocator",
    "IdentityGenerator",
    "ShadowDomFlattener",
    "StyleRewrite",
    "default_identity_generator",
    "discover_hosts",
    "flatten_shadow_dom",
    "host_attribute_selector",
    "rewrite_host_selectors",
]
