from .html_serializer import HTMLSerializer, escape_attribute, escape_text, to_html

__all__ = ["HTMLSerializer", "escape_attribute", "escape_text", "to_html"]
