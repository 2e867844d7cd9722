"""Scoped rewriting of shadow stylesheets.

Once a shadow root is flattened its stylesheet applies to the whole document,
so every ``:host`` selector must be pinned to the wrapper that replaces the
host. The wrapper carries the flatten identity attribute, so the host
pseudo-class becomes an attribute selector on that identity:

    :host                  -> [data-flatten-id="f1"]
    :host(.active)         -> [data-flatten-id="f1"]:is(.active)
    :host-context(.dark)   -> [data-flatten-id="f1"]:is(.dark, .dark *)

Comments and quoted strings are copied through untouched. ``::slotted()``
cannot be expressed once the host's light children are gone; it is kept as
is and reported.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from pagecapture.config import FLATTEN_ID_ATTRIBUTE

logger = logging.getLogger(__name__)

# Comment, string, or a host pseudo-class token. The token must not be part of
# a longer identifier (":hostname", ":host-foo") and must not be escaped or a
# pseudo-element ("\:host", "::host").
_TOKEN_RE = re.compile(
    r"""
    (?P<comment>/\*.*?(?:\*/|\Z))
    | (?P<string>"(?:\\.|[^"\\])*"?|'(?:\\.|[^'\\])*'?)
    | (?P<slotted>::slotted(?![\w-]))
    | (?<![:\\])(?P<host>:host(?P<context>-context)?)(?![\w-])
    """,
    re.VERBOSE | re.DOTALL | re.IGNORECASE,
)


@dataclass(slots=True)
class StyleRewrite:
    """Rewritten stylesheet text plus what happened on the way."""

    text: str
    replacements: int = 0
    warnings: list[str] = field(default_factory=list)


def host_attribute_selector(identity: str, attribute: str = FLATTEN_ID_ATTRIBUTE) -> str:
    escaped = identity.replace("\\", "\\\\").replace('"', '\\"')
    return f'[{attribute}="{escaped}"]'


def _find_closing_paren(css: str, open_index: int) -> int:
    """Index of the parenthesis closing the one at ``open_index``, or -1."""
    depth = 0
    i = open_index
    quote = ""
    while i < len(css):
        char = css[i]
        if quote:
            if char == "\\":
                i += 2
                continue
            if char == quote:
                quote = ""
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return i
        elif char in "{};":
            # A selector argument never spans a block or declaration boundary
            return -1
        i += 1
    return -1


def _split_top_level(argument: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for i, char in enumerate(argument):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(argument[start:i].strip())
            start = i + 1
    parts.append(argument[start:].strip())
    return [part for part in parts if part]


def _context_selector(argument: str) -> str:
    # The host, or any of its ancestors, matches the argument
    options = []
    for part in _split_top_level(argument):
        options.append(part)
        options.append(f"{part} *")
    return f":is({', '.join(options)})"


def rewrite_host_selectors(css: str, identity: str, attribute: str = FLATTEN_ID_ATTRIBUTE) -> StyleRewrite:
    """Replace host pseudo-class selectors in ``css`` with the identity attribute selector.

    Args:
        css: Stylesheet text taken from a shadow root.
        identity: Flatten identity of the wrapper replacing the host.
        attribute: Attribute carrying the identity.

    Returns:
        A StyleRewrite. Forms that cannot be rewritten are left verbatim and
        described in ``warnings``.
    """
    target = host_attribute_selector(identity, attribute)
    result = StyleRewrite(text=css)
    out: list[str] = []
    pos = 0
    slotted_reported = False

    while True:
        match = _TOKEN_RE.search(css, pos)
        if match is None:
            break

        if match.group("comment") is not None or match.group("string") is not None:
            out.append(css[pos:match.end()])
            pos = match.end()
            continue

        if match.group("slotted") is not None:
            if not slotted_reported:
                result.warnings.append("::slotted() selectors cannot be scoped after flattening and were left as is")
                slotted_reported = True
            out.append(css[pos:match.end()])
            pos = match.end()
            continue

        token = match.group("host")
        is_context = match.group("context") is not None
        out.append(css[pos:match.start()])
        after = match.end()

        if after < len(css) and css[after] == "(":
            close = _find_closing_paren(css, after)
            argument = css[after + 1:close].strip() if close != -1 else ""
            if close == -1 or not argument:
                reason = "unbalanced parentheses" if close == -1 else "empty argument"
                result.warnings.append(f"{token}( with {reason} at offset {match.start()} was left as is")
                out.append(token)
                pos = after
                continue
            if is_context:
                out.append(f"{target}{_context_selector(argument)}")
            else:
                out.append(f"{target}:is({argument})")
            result.replacements += 1
            pos = close + 1
            continue

        if is_context:
            result.warnings.append(f":host-context without an argument at offset {match.start()} was left as is")
            out.append(token)
        else:
            out.append(target)
            result.replacements += 1
        pos = after

    out.append(css[pos:])
    result.text = "".join(out)

    for warning in result.warnings:
        logger.warning(f"Style rewrite for {target}: {warning}")

    return result
