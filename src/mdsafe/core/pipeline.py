"""Public conversion entry points: delegated rendering with a built-in fallback"""

import logging
from typing import Any, Mapping, Optional, Union

from markdown_it import MarkdownIt

from mdsafe.core.blocks import render_document
from mdsafe.core.delegate import PLUGINS, EngineFactory, PluginSpec, render_delegated
from mdsafe.core.models import RenderOptions
from mdsafe.core.segment import split_lines


logger = logging.getLogger(__name__)

OptionsLike = Union[RenderOptions, Mapping[str, Any], None]


def _options(options: OptionsLike) -> RenderOptions:
    """Accept RenderOptions, a plain mapping of option fields, or None for defaults."""
    if options is None:
        return RenderOptions()
    return RenderOptions.model_validate(options)


def convert_fallback(source: str, options: OptionsLike = None) -> str:
    """Render with the built-in block/inline engine, bypassing markdown-it."""
    return render_document(split_lines(source), _options(options))


def convert(
    source: str,
    options: OptionsLike = None,
    factory: Optional[EngineFactory] = MarkdownIt,
    plugins: Mapping[str, PluginSpec] = PLUGINS,
    ) -> str:
    """Convert Markdown to sanitized HTML.

    Uses the markdown-it engine built by `factory`; factory=None means no external
    engine is available and the built-in fallback engine renders instead.
    """
    opts = _options(options)
    if factory is None:
        logger.debug("No external engine available; using fallback renderer")
        return convert_fallback(source, opts)
    return render_delegated(source, opts, factory, plugins)
