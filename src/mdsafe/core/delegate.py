"""Delegated rendering through markdown-it-py, wrapped in the link safety policy"""

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from markdown_it import MarkdownIt

from mdsafe.core.models import RenderOptions
from mdsafe.core.safety import add_link_targets, link_target_attrs, safe_href, validate_href
from mdsafe.core.segment import normalize


logger = logging.getLogger(__name__)

EngineFactory = Callable[..., MarkdownIt]
Plugin = Callable[..., None]


@dataclass(frozen=True)
class PluginSpec:
    """A markdown-it plugin: a "module:attr" path or the plugin callable itself."""
    target:        Union[str, Plugin]
    kwargs:        Mapping[str, Any] = field(default_factory=dict)
    requires_html: bool = False     # only applied when raw HTML is allowed


PLUGINS: dict[str, PluginSpec] = {
    "footnote":    PluginSpec("mdit_py_plugins.footnote:footnote_plugin"),
    "tasklists":   PluginSpec("mdit_py_plugins.tasklists:tasklists_plugin"),
    "deflist":     PluginSpec("mdit_py_plugins.deflist:deflist_plugin"),
    "subscript":   PluginSpec("mdit_py_plugins.subscript:sub_plugin"),
    "superscript": PluginSpec("mdit_py_plugins.superscript:superscript_plugin"),
    "mark":        PluginSpec("mdit_py_plugins.mark:mark_plugin"),
    "abbr":        PluginSpec("mdit_py_plugins.abbr:abbr_plugin"),
    # Arbitrary attributes are as powerful as raw HTML.
    "attrs":       PluginSpec("mdit_py_plugins.attrs:attrs_plugin", requires_html=True),
    "container":   PluginSpec("mdit_py_plugins.container:container_plugin", {"name": "note"}),
}


def _lookup(target: Union[str, Plugin]) -> Optional[Plugin]:
    """Return the plugin callable, or None when its module or attribute is absent."""
    if callable(target):
        return target
    module_name, _, attr = target.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    plugin = getattr(module, attr, None)
    return plugin if callable(plugin) else None


def resolve_plugins(table: Mapping[str, PluginSpec]) -> dict[str, tuple[Plugin, PluginSpec]]:
    """Resolve a capability table to the plugins present in this environment."""
    found = {}
    for name, spec in table.items():
        plugin = _lookup(spec.target)
        if plugin is None:
            logger.debug("Markdown plugin %r not available", name)
            continue
        found[name] = (plugin, spec)
    return found


def _accept_any_link(url: str) -> bool:
    """Parse every link destination; schemes are judged at render time."""
    return True


def _link_open_rule(opts: RenderOptions) -> Callable:
    def link_open(self, tokens, idx, options, env) -> str:
        token = tokens[idx]
        token.attrSet("href", safe_href(str(token.attrGet("href") or ""), opts.allow_unsafe_links))
        if opts.link_target_blank:
            for name, value in link_target_attrs(str(token.attrGet("rel") or "")).items():
                token.attrSet(name, value)
        return self.renderToken(tokens, idx, options, env)
    return link_open


def _safe_image(self, tokens, idx, options, env) -> str:
    if not validate_href(str(tokens[idx].attrGet("src") or "")):
        return ""
    return self.image(tokens, idx, options, env)


def _use_plugins(md: MarkdownIt, table: Mapping[str, PluginSpec], options: RenderOptions) -> list[str]:
    """Apply each available plugin; one failing plugin never stops the others."""
    applied = []
    for name, (plugin, spec) in resolve_plugins(table).items():
        if spec.requires_html and not options.allow_html:
            continue
        try:
            md.use(plugin, **spec.kwargs)
        except Exception:
            logger.warning("Skipping markdown plugin %r: configuration failed", name, exc_info=True)
            continue
        applied.append(name)
    logger.debug("Markdown plugins applied: %s", ", ".join(applied) or "none")
    return applied


def build_engine(
    options: RenderOptions,
    factory: EngineFactory = MarkdownIt,
    plugins: Mapping[str, PluginSpec] = PLUGINS,
    ) -> MarkdownIt:
    """Configure a MarkdownIt instance for the given options."""
    md = factory("gfm-like", options_update={
        "html": options.allow_html,
        "linkify": options.linkify,
        "typographer": options.typographer,
        "breaks": options.breaks,
    })
    md.enable(["table", "strikethrough"])
    if options.typographer:
        md.enable(["replacements", "smartquotes"])
    _use_plugins(md, plugins, options)
    md.validateLink = _accept_any_link
    md.add_render_rule("link_open", _link_open_rule(options))
    if not options.allow_unsafe_links:
        md.add_render_rule("image", _safe_image)
    return md


def render_delegated(
    source: str,
    options: Optional[RenderOptions] = None,
    factory: EngineFactory = MarkdownIt,
    plugins: Mapping[str, PluginSpec] = PLUGINS,
    ) -> str:
    """Render source with markdown-it-py; raw HTML anchors get target/rel in an HTML pass."""
    options = options or RenderOptions()
    html = build_engine(options, factory, plugins).render(normalize(source))
    if options.allow_html and options.link_target_blank:
        return add_link_targets(html)
    return html
