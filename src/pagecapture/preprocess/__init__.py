from pagecapture.preprocess.cleanup import CleanupStats, inject_code_style, page_cleanup
from pagecapture.preprocess.icons import refresh_iconify_icons
from pagecapture.preprocess.metadata import chapter_title, extract_chapter_number, lang_set, title_extract
from pagecapture.preprocess.readiness import prepare_lazy_images
from pagecapture.preprocess.text import clean_angle_brackets, normalize_code_spacing

__all__ = [
    "CleanupStats",
    "chapter_title",
    "clean_angle_brackets",
    "extract_chapter_number",
    "inject_code_style",
    "lang_set",
    "normalize_code_spacing",
    "page_cleanup",
    "prepare_lazy_images",
    "refresh_iconify_icons",
    "title_extract",
]
