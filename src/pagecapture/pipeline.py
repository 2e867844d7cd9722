"""Capture preprocessing pipeline.

Runs the tree edits a capture needs, in order, against one document:

1. readiness (lazy images)
2. site adapter ``before_capture``
3. shadow DOM flattening
4. sanitizers (page cleanup, inline code style, iconify refresh)
5. site adapter ``after_capture``
6. accessors (language, title with chapter prefix)

Each step is isolated: a failure is logged and recorded on the report and
the remaining steps still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pagecapture.adapters import AdapterRegistry
from pagecapture.config import CaptureSettings
from pagecapture.dom.flatten import IdentityGenerator, ShadowDomFlattener
from pagecapture.dom.views import CaptureReport, DOMTreeNode
from pagecapture.exceptions import InvalidDocumentError
from pagecapture.observability import observe
from pagecapture.preprocess import (
    chapter_title,
    inject_code_style,
    lang_set,
    page_cleanup,
    prepare_lazy_images,
    refresh_iconify_icons,
    title_extract,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


class CapturePipeline:
    """Prepares a document tree for capture and reports what it changed."""

    def __init__(
        self,
        settings: CaptureSettings | None = None,
        registry: AdapterRegistry | None = None,
        generator: IdentityGenerator | None = None,
    ):
        self.settings = settings or CaptureSettings()
        self.registry = registry if registry is not None else AdapterRegistry.with_builtin_adapters()
        self.flattener = ShadowDomFlattener(generator=generator, settings=self.settings.flatten)

    @observe(name='capture_pipeline', ignore_input=True, ignore_output=True)
    def run(self, root: DOMTreeNode, url: str | None = None) -> CaptureReport:
        if not isinstance(root, DOMTreeNode):
            raise InvalidDocumentError(f'expected a DOMTreeNode root, got {type(root).__name__}')

        report = CaptureReport(url=url)
        settings = self.settings

        adapter = self._step(report, 'detect_adapter', lambda: self.registry.detect(root))
        if adapter is None:
            adapter = self.registry.fallback
        report.adapter = adapter.name

        if settings.prepare_images:
            report.lazy_images = self._step(report, 'prepare_lazy_images', lambda: prepare_lazy_images(root)) or 0

        self._step(report, f'{adapter.name}.before_capture', lambda: adapter.before_capture(root))

        if settings.flatten_shadow_dom:
            self._flatten(root, report)

        if settings.cleanup:
            stats = self._step(report, 'page_cleanup', lambda: page_cleanup(root, settings.cleanup_selectors))
            if stats is not None:
                report.removed_elements = stats.removed_elements
        if settings.code_style:
            self._step(report, 'inject_code_style', lambda: inject_code_style(root))
        if settings.refresh_icons:
            report.icons_refreshed = self._step(report, 'refresh_iconify_icons', lambda: refresh_iconify_icons(root)) or 0

        self._step(report, f'{adapter.name}.after_capture', lambda: adapter.after_capture(root))

        report.lang = self._step(report, 'lang_set', lambda: lang_set(root, settings.default_lang)) or settings.default_lang
        report.title = self._step(report, 'title_extract', lambda: self._title(root, url)) or (url or '')

        if report.errors:
            logger.warning(f'Capture preprocessing finished with {len(report.errors)} error(s)')
        else:
            logger.info(f'Capture preprocessing finished: adapter={report.adapter}, flattened={report.flattened_count}')
        return report

    def _flatten(self, root: DOMTreeNode, report: CaptureReport) -> None:
        records = self._step(report, 'flatten_shadow_dom', lambda: self.flattener.flatten(root))
        for record in records or []:
            report.flattened.append(record.to_dict())
            if record.error:
                report.errors.append(f'flatten_shadow_dom: {record.error}')

    def _title(self, root: DOMTreeNode, url: str | None) -> str:
        title = title_extract(root, url)
        if self.settings.chapter_titles and url:
            title = chapter_title(title, url)
        return title

    @staticmethod
    def _step(report: CaptureReport, name: str, func: Callable[[], T]) -> T | None:
        try:
            return func()
        except Exception as e:
            logger.exception(f'Capture step {name} failed: {type(e).__name__}: {e}')
            report.errors.append(f'{name}: {type(e).__name__}: {e}')
            return None


def run_pipeline(root: DOMTreeNode, url: str | None = None, **kwargs: Any) -> CaptureReport:
    """Run a CapturePipeline built from ``kwargs`` over ``root``."""
    return CapturePipeline(**kwargs).run(root, url)
