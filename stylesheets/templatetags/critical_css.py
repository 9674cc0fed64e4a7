"""
Template tag that inlines a pre-built critical stylesheet into the page head.
"""
import logging
import os
from pathlib import Path

from django import template
from django.conf import settings
from django.contrib.staticfiles import finders
from django.utils.safestring import mark_safe

from stylesheets.engine.render import style_tag

logger = logging.getLogger(__name__)

register = template.Library()


def resolve_critical_path(name):
    """
    Locate ``name`` in CSS_OPTIMIZER['CRITICAL_CSS_DIR'] when set, otherwise
    through the staticfiles finders.
    """
    # Template literals arrive as SafeString, which pathlib refuses to intern.
    name = os.fsdecode(os.fsencode(name))
    config = getattr(settings, 'CSS_OPTIMIZER', {}) or {}
    base_dir = config.get('CRITICAL_CSS_DIR')
    if base_dir:
        candidate = Path(os.path.join(base_dir, name))
        return candidate if candidate.is_file() else None
    found = finders.find(name)
    return Path(found) if found else None


@register.simple_tag
def inline_critical_css(name='critical.css'):
    """
    Emit ``<style>`` with the contents of a critical CSS file.

    Usage:
        {% load critical_css %}
        <head>{% inline_critical_css "home-critical.css" %}</head>

    A missing or empty file renders nothing.
    """
    path = resolve_critical_path(name)
    if path is None:
        logger.warning("Critical CSS file not found: %s", name)
        return ''
    try:
        css = path.read_text(encoding='utf-8').strip()
    except OSError as exc:
        logger.warning("Could not read critical CSS %s: %s", path, exc)
        return ''
    if not css:
        return ''
    return mark_safe(style_tag(css))
