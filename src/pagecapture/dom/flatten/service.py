"""Shadow DOM flattening.

Capture tools (print-to-PDF, screenshot diffing, HTML export) only see the
light tree. This pass rewrites every shadow host into an ordinary element so
its rendered content survives capture:

    <card>#shadow[<style>:host{color:red}</style><span>hi</span>]</card>

becomes

    <card-flat data-flatten-id="f3a9..."><style>[data-flatten-id="f3a9..."]{color:red}</style><span>hi</span></card-flat>

The pass is two-phase. Discovery materializes the full list of hosts before
anything is written, then each host is replaced in turn. Hosts are processed
outer-to-inner: a host nested inside another host's shadow root is cloned
into the outer wrapper first and then flattened where its clone landed.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from pagecapture.config import FlattenSettings
from pagecapture.dom.flatten.styles import rewrite_host_selectors
from pagecapture.dom.views import DOMTreeNode, FlattenRecord, NodeType, create_element, create_fragment
from pagecapture.exceptions import FlattenError, InvalidDocumentError
from pagecapture.observability import observe_debug

logger = logging.getLogger(__name__)

IdentityGenerator = Callable[[], str]


def discover_hosts(root: DOMTreeNode) -> list[DOMTreeNode]:
    """Return every shadow host under ``root`` in pre-order, outer-to-inner.

    Read-only. Shadow roots are descended into, so hosts nested inside
    another host's shadow tree are listed after that host. ``root`` itself is
    included when it is a host.
    """
    if root is None or not isinstance(root, DOMTreeNode):
        raise InvalidDocumentError(f"expected a DOMTreeNode root, got {type(root).__name__}")

    hosts: list[DOMTreeNode] = []
    if root.is_shadow_host:
        hosts.append(root)
    for node in root.iter_descendants(pierce_shadow=True):
        if node.node_type == NodeType.ELEMENT_NODE and node.shadow_roots:
            hosts.append(node)
    return hosts


def default_identity_generator(prefix: str = "f", length: int = 12) -> IdentityGenerator:
    def generate() -> str:
        return f"{prefix}{uuid.uuid4().hex[:length]}"

    return generate


class IdentityAllocator:
    """Hands out flatten identities that are unique within one document.

    Persisted identities (already on a host) are reused. Every identity
    present in the tree is reserved up front so a fresh one can never clash
    with a wrapper or host left by an earlier pass.
    """

    def __init__(
        self,
        generator: IdentityGenerator | None = None,
        settings: FlattenSettings | None = None,
    ):
        self.settings = settings or FlattenSettings()
        self.generator = generator or default_identity_generator(self.settings.id_prefix, self.settings.id_length)
        self._taken: set[str] = set()
        self._persisted_seen: set[str] = set()

    def reserve_from_tree(self, root: DOMTreeNode) -> None:
        attribute = self.settings.id_attribute
        nodes = [root, *root.iter_descendants(pierce_shadow=True)]
        for node in nodes:
            value = node.attributes.get(attribute) if node.is_element else None
            if value:
                self._taken.add(value)

    @property
    def taken(self) -> frozenset[str]:
        return frozenset(self._taken)

    def assign(self, host: DOMTreeNode) -> tuple[str, bool]:
        """Return ``(identity, reused)`` for ``host``."""
        persisted = host.attributes.get(self.settings.id_attribute)
        if persisted:
            if persisted in self._persisted_seen:
                logger.warning(f"Flatten identity {persisted!r} is persisted on more than one <{host.tag_name}>")
            self._persisted_seen.add(persisted)
            self._taken.add(persisted)
            return persisted, True
        return self._generate(), False

    def _generate(self) -> str:
        candidate = ""
        for attempt in range(self.settings.max_attempts):
            candidate = str(self.generator())
            if candidate and candidate not in self._taken:
                self._taken.add(candidate)
                return candidate
            logger.debug(f"Flatten identity collision on {candidate!r} (attempt {attempt + 1})")

        # The generator keeps repeating itself; disambiguate deterministically
        base = candidate or self.settings.id_prefix
        counter = 2
        while f"{base}-{counter}" in self._taken:
            counter += 1
        unique = f"{base}-{counter}"
        logger.warning(
            f"Identity generator produced only duplicates after {self.settings.max_attempts} attempts, using {unique!r}"
        )
        self._taken.add(unique)
        return unique


def is_style_element(node: DOMTreeNode) -> bool:
    return node.node_type == NodeType.ELEMENT_NODE and node.tag_name == "style"


class ShadowDomFlattener:
    """Replaces shadow hosts with flattened wrapper elements."""

    def __init__(
        self,
        generator: IdentityGenerator | None = None,
        settings: FlattenSettings | None = None,
    ):
        self.settings = settings or FlattenSettings()
        self.generator = generator

    @observe_debug(name="flatten_shadow_dom", ignore_input=True, ignore_output=True)
    def flatten(self, root: DOMTreeNode) -> list[FlattenRecord]:
        """Flatten every shadow host under ``root``.

        Returns one record per discovered host, in processing order. Failures
        are confined to the host they happen on.
        """
        hosts = discover_hosts(root)
        if not hosts:
            logger.debug("No shadow hosts found")
            return []

        allocator = IdentityAllocator(self.generator, self.settings)
        allocator.reserve_from_tree(root)

        # id(original node) -> clone; filled while outer hosts are flattened
        clone_map: dict[int, DOMTreeNode] = {}
        records: list[FlattenRecord] = []

        logger.debug(f"Flattening {len(hosts)} shadow host(s)")
        for original in hosts:
            host = self._resolve(original, clone_map)
            record = self._flatten_one(root, host, allocator, clone_map)
            records.append(record)

        flattened = sum(1 for record in records if record.ok)
        if flattened != len(records):
            logger.warning(f"Flattened {flattened}/{len(records)} shadow host(s)")
        else:
            logger.info(f"Flattened {flattened} shadow host(s)")
        return records

    @staticmethod
    def _resolve(host: DOMTreeNode, clone_map: dict[int, DOMTreeNode]) -> DOMTreeNode:
        # Follow the chain: a host may have been cloned more than once
        while id(host) in clone_map:
            host = clone_map[id(host)]
        return host

    @staticmethod
    def _is_connected(node: DOMTreeNode, root: DOMTreeNode) -> bool:
        while node is not None:
            if node is root:
                return True
            node = node.host_node if node.is_shadow_root else node.parent_node
        return False

    def _flatten_one(
        self,
        root: DOMTreeNode,
        host: DOMTreeNode,
        allocator: IdentityAllocator,
        clone_map: dict[int, DOMTreeNode],
    ) -> FlattenRecord:
        record = FlattenRecord(tag_name=host.tag_name, identity=None, wrapper=None)
        try:
            if host.parent_node is None:
                raise FlattenError("host is detached from the document", tag_name=host.tag_name)
            if not self._is_connected(host, root):
                raise FlattenError("host was discarded with an enclosing host", tag_name=host.tag_name)
            if not host.shadow_roots:
                raise FlattenError("host no longer has a shadow root", tag_name=host.tag_name)

            identity, reused = allocator.assign(host)
            record.identity = identity
            record.reused_identity = reused

            fragment, rewrites, warnings = self.extract_shadow_content(host, identity, clone_map)
            record.style_rewrites = rewrites
            record.warnings.extend(warnings)

            if host.children:
                record.warnings.append(
                    f"{len(host.children)} light child node(s) of <{host.tag_name}> were discarded with the host"
                )

            record.wrapper = self.replace_host(host, fragment, identity)
        except FlattenError as e:
            logger.warning(f"Skipping shadow host: {e}")
            record.error = str(e)
        except Exception as e:
            logger.exception(f"Failed to flatten <{host.tag_name}>: {type(e).__name__}: {e}")
            record.error = f"{type(e).__name__}: {e}"
        return record

    def extract_shadow_content(
        self,
        host: DOMTreeNode,
        identity: str,
        clone_map: dict[int, DOMTreeNode] | None = None,
    ) -> tuple[DOMTreeNode, int, list[str]]:
        """Copy the host's shadow children into a fragment, rewriting stylesheets.

        Returns ``(fragment, style_rewrites, warnings)``.
        """
        shadow = host.shadow_root
        if shadow is None:
            raise FlattenError("host has no shadow root", tag_name=host.tag_name)

        fragment = create_fragment()
        rewrites = 0
        warnings: list[str] = []

        for node in shadow.children:
            if is_style_element(node):
                rewrite = rewrite_host_selectors(node.text_content, identity, self.settings.id_attribute)
                style = create_element("style", node.attributes)
                style.text_content = rewrite.text
                fragment.append_child(style)
                rewrites += rewrite.replacements
                warnings.extend(rewrite.warnings)
            else:
                fragment.append_child(node.clone(deep=True, memo=clone_map))

        return fragment, rewrites, warnings

    def replace_host(self, host: DOMTreeNode, fragment: DOMTreeNode, identity: str) -> DOMTreeNode:
        """Put a wrapper holding ``fragment`` where ``host`` was, and drop the host."""
        wrapper = create_element(f"{host.tag_name}{self.settings.wrapper_suffix}")
        wrapper.set_attribute(self.settings.id_attribute, identity)
        wrapper.append_child(fragment)
        host.insert_after(wrapper)
        host.remove()
        return wrapper


def flatten_shadow_dom(
    root: DOMTreeNode,
    *,
    generator: IdentityGenerator | None = None,
    settings: FlattenSettings | None = None,
) -> list[FlattenRecord]:
    """Flatten all shadow roots under ``root`` in place and return what was done."""
    return ShadowDomFlattener(generator=generator, settings=settings).flatten(root)
