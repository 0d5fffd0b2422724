"""Template Engine implementation."""

import shutil
import tempfile
import threading
import time
from collections.abc import Mapping, Sequence
from datetime import timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

from staticweave.cache import DEFAULT_TTL_SECONDS, Cache, Clock, to_seconds
from staticweave.errors import ErrorFactory, TemplateError, get_error_factory
from staticweave.logging import get_logger
from staticweave.telemetry import (
    MetricLabels,
    instrument_render,
    record_cache_lookup,
    record_template_load,
)
from staticweave.types import MissingPolicy, SourceKind

from .context import Context
from .loaders import (
    DEFAULT_REMOTE_TIMEOUT,
    FileLoader,
    RemoteLoader,
    StringLoader,
    TemplateFetcher,
    TemplateReader,
    is_url,
)
from .parser import (
    DEFAULT_CLOSE_DELIM,
    DEFAULT_OPEN_DELIM,
    extract_references,
    scan,
    validate_syntax,
)
from .types import PageOptions, SourceKey, TemplateSource

if TYPE_CHECKING:
    from staticweave.config.models import CacheConfig, EngineConfig, RemoteConfig

DEFAULT_EXTENSION = ".html"

# Site skeleton downloaded by create_template_folder
DEFAULT_TEMPLATE_URL = "https://raw.githubusercontent.com/sebastienrousseau/shokunin/main/template/"
DEFAULT_SITE_FILES = (
    "contact.html",
    "index.html",
    "page.html",
    "post.html",
    "main.js",
    "sw.js",
)


class Engine:
    """Render named templates with placeholder substitution and a TTL cache.

    Supports:
    - Placeholders: {{name}}, name matching [A-Za-z_][A-Za-z0-9_]*
      ({{ name }} too when trim_whitespace is set)
    - Sources: remote URL, <base_path>/<name><extension>, registered strings
    - Page options merged under the explicit context

    Does NOT support:
    - Loops, conditionals, partials or includes
    - Escaping of substituted values
    """

    def __init__(
        self,
        base_path: str | Path,
        ttl: float | timedelta = DEFAULT_TTL_SECONDS,
        *,
        extension: str = DEFAULT_EXTENSION,
        missing: MissingPolicy | str = MissingPolicy.KEEP,
        open_delim: str = DEFAULT_OPEN_DELIM,
        close_delim: str = DEFAULT_CLOSE_DELIM,
        trim_whitespace: bool = False,
        file_loader: TemplateReader | None = None,
        remote_loader: TemplateFetcher | None = None,
        remote_timeout: float = DEFAULT_REMOTE_TIMEOUT,
        cache_rendered: bool = False,
        capacity: int | None = None,
        clock: Clock = time.monotonic,
        error_factory: ErrorFactory | None = None,
    ) -> None:
        """Initialize template engine.

        Args:
            base_path: Root directory for file templates
            ttl: Cache time-to-live, seconds or timedelta
            extension: File extension appended to template names
            missing: Policy for placeholders absent from the context
            open_delim: Opening placeholder delimiter
            close_delim: Closing placeholder delimiter
            trim_whitespace: Accept whitespace inside delimiters ({{ name }})
            file_loader: Filesystem reader (default: FileLoader)
            remote_loader: URL fetcher (default: RemoteLoader)
            remote_timeout: Timeout for the default RemoteLoader, in seconds
            cache_rendered: Also cache rendered output per context
            capacity: Optional maximum number of cached bodies
            clock: Monotonic time source for cache expiry
            error_factory: Factory for raised errors (default: shared factory)
        """
        self._check_delimiters(open_delim, close_delim)
        self.base_path = Path(base_path)
        self.ttl = to_seconds(ttl)
        self.extension = extension
        self.missing = MissingPolicy(missing)
        self._open_delim = open_delim
        self._close_delim = close_delim
        self.trim_whitespace = trim_whitespace

        self._file_loader: TemplateReader = file_loader or FileLoader()
        self._remote_loader: TemplateFetcher = remote_loader or RemoteLoader(timeout=remote_timeout)
        self._owns_remote_loader = remote_loader is None
        self._strings = StringLoader()
        self._remotes: dict[str, str] = {}

        self._body_cache: Cache[SourceKey, str] = Cache(ttl=self.ttl, capacity=capacity, clock=clock)
        self._render_cache: Cache[tuple[str, str], str] | None = (
            Cache(ttl=self.ttl, capacity=capacity, clock=clock) if cache_rendered else None
        )

        # One lock per source so a cold key is loaded once
        self._load_locks: dict[SourceKey, threading.Lock] = {}
        self._load_locks_guard = threading.Lock()

        self._errors = error_factory or get_error_factory()
        self._logger = get_logger("engine")

    @classmethod
    def from_config(
        cls,
        engine: "EngineConfig",
        remote: "RemoteConfig | None" = None,
        cache: "CacheConfig | None" = None,
        **overrides: Any,
    ) -> "Engine":
        """Build an engine from configuration sections.

        Args:
            engine: Engine section
            remote: Remote section (timeout, headers)
            cache: Cache section (capacity)
            **overrides: Keyword arguments passed straight to Engine()

        Returns:
            Configured Engine with inline templates and remotes registered
        """
        kwargs: dict[str, Any] = {
            "extension": engine.extension,
            "missing": engine.missing,
            "open_delim": engine.open_delim,
            "close_delim": engine.close_delim,
            "trim_whitespace": engine.trim_whitespace,
            "cache_rendered": engine.cache_rendered,
        }
        if remote is not None:
            kwargs["remote_loader"] = RemoteLoader(
                timeout=remote.timeout,
                headers=remote.headers,
                follow_redirects=remote.follow_redirects,
            )
        if cache is not None:
            kwargs["capacity"] = cache.capacity
        kwargs.update(overrides)

        instance = cls(engine.base_path, engine.ttl_seconds, **kwargs)
        if remote is not None and "remote_loader" not in overrides:
            instance._owns_remote_loader = True
        for name, body in engine.templates.items():
            instance.register_template(name, body)
        for name, url in engine.remotes.items():
            instance.register_remote(name, url)
        return instance

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def cache(self) -> Cache[SourceKey, str]:
        """Cache of raw template bodies."""
        return self._body_cache

    @property
    def rendered_cache(self) -> Cache[tuple[str, str], str] | None:
        """Cache of rendered output, when enabled."""
        return self._render_cache

    @property
    def delimiters(self) -> tuple[str, str]:
        return self._open_delim, self._close_delim

    def render_page(
        self,
        context: Context | Mapping[str, Any],
        name: str,
        options: PageOptions | None = None,
    ) -> str:
        """Render the template ``name`` with ``context``.

        Args:
            context: Placeholder values; never modified
            name: Template name, URL, or registered alias
            options: Optional page metadata, overridden by ``context``

        Returns:
            The fully rendered text

        Raises:
            TemplateError: NOT_FOUND, IO, REMOTE, RENDER or ENGINE failure.
                Partial output is never returned.
        """
        with instrument_render(name) as span_info:
            try:
                source = self.resolve(name)
                span_info["source_kind"] = source.kind.value
                values = self._merge_context(context, options)

                render_key = None
                if self._render_cache is not None:
                    render_key = (str(source.key), values.fingerprint())
                    cached = self._render_cache.get(render_key)
                    record_cache_lookup(MetricLabels.CACHE_RENDERED, cached is not None)
                    if cached is not None:
                        span_info["cache_hit"] = True
                        self._logger.debug("Rendered output cache hit", template=name)
                        return cached

                body, hit = self._get_body(source)
                span_info["cache_hit"] = hit
                rendered = self._substitute(body, values, template_name=name)

                if render_key is not None and self._render_cache is not None:
                    self._render_cache.set(render_key, rendered)
                return rendered

            except TemplateError as e:
                self._logger.warning(
                    "Render failed",
                    template=name,
                    error_code=e.code,
                    category=e.category.value,
                )
                raise
            except Exception as e:
                error = self._errors.from_exception(e, template_name=name)
                self._logger.exception("Unexpected render failure", template=name)
                raise error from e

    def render_template(self, template: str, context: Context | Mapping[str, Any]) -> str:
        """Substitute placeholders in a raw template string (no cache).

        Args:
            template: Template text
            context: Placeholder values

        Returns:
            Rendered text

        Raises:
            TemplateError: RENDER failure under the ``error`` missing policy
        """
        values = context if isinstance(context, Context) else Context(context)
        return self._substitute(template, values, template_name=None)

    def validate(self, template: str) -> list[str]:
        """Validate template syntax without rendering.

        Returns list of errors (empty if valid).
        Does NOT check variable existence.
        """
        return validate_syntax(
            template, self._open_delim, self._close_delim, trim_whitespace=self.trim_whitespace
        )

    def extract_references(self, template: str) -> list[str]:
        """Extract all variable references from template.

        E.g., "{{title}} by {{author}}" -> ["title", "author"]
        """
        return extract_references(
            template, self._open_delim, self._close_delim, trim_whitespace=self.trim_whitespace
        )

    def resolve(self, name: str) -> TemplateSource:
        """Decide which source serves ``name``.

        Order: explicit remote URL (or registered remote alias), then
        ``<base_path>/<name><extension>``, then a registered string.

        Raises:
            TemplateError: TEMPLATE_NOT_FOUND if nothing matches
        """
        if is_url(name):
            return TemplateSource(name=name, kind=SourceKind.REMOTE, location=name)
        if name in self._remotes:
            return TemplateSource(name=name, kind=SourceKind.REMOTE, location=self._remotes[name])

        path = self.template_path(name)
        if path is not None:
            source = TemplateSource(name=name, kind=SourceKind.FILE, location=str(path))
            # A cached body stands in for the stat until it expires
            if source.key in self._body_cache or self._is_file(path):
                return source

        if self._strings.has(name):
            return TemplateSource(name=name, kind=SourceKind.STRING, location=name)

        looked_in = str(path) if path is not None else "no usable path"
        raise self._errors.create(
            "TEMPLATE_NOT_FOUND",
            template_name=name,
            detail=f"No remote source, no file ({looked_in}) and no registered string template",
        )

    def template_path(self, name: str) -> Path | None:
        """File path for ``name``.

        None when the name is empty or escapes ``base_path``, and when the
        filesystem cannot represent it (NUL bytes, over-long components).
        """
        if not name:
            return None
        try:
            candidate = self.base_path / f"{name}{self.extension}"
            base = self.base_path.resolve()
            if not candidate.resolve().is_relative_to(base):
                return None
        except (OSError, ValueError):
            return None
        return candidate

    def register_template(self, name: str, body: str) -> None:
        """Register an in-memory template under ``name``."""
        self._strings.register(name, body)
        self._invalidate_source(TemplateSource(name=name, kind=SourceKind.STRING, location=name))

    def register_remote(self, name: str, url: str) -> None:
        """Serve ``name`` from ``url``.

        Raises:
            ValueError: If ``url`` is not an http(s) URL
        """
        if not is_url(url):
            raise ValueError(f"Not an http(s) URL: {url}")
        self._remotes[name] = url
        self._invalidate_source(TemplateSource(name=name, kind=SourceKind.REMOTE, location=url))

    def unregister(self, name: str) -> bool:
        """Forget string and remote registrations for ``name``."""
        self.invalidate(name)
        removed_remote = self._remotes.pop(name, None) is not None
        removed_string = self._strings.unregister(name)
        return removed_remote or removed_string

    def invalidate(self, name: str) -> bool:
        """Drop every cached body (and rendered output) ``name`` could resolve to.

        Returns:
            True if a live cache entry was removed
        """
        sources: list[TemplateSource] = []
        if is_url(name):
            sources.append(TemplateSource(name=name, kind=SourceKind.REMOTE, location=name))
        elif name in self._remotes:
            sources.append(
                TemplateSource(name=name, kind=SourceKind.REMOTE, location=self._remotes[name])
            )
        path = self.template_path(name) if not is_url(name) else None
        if path is not None:
            sources.append(TemplateSource(name=name, kind=SourceKind.FILE, location=str(path)))
        sources.append(TemplateSource(name=name, kind=SourceKind.STRING, location=name))

        removed = False
        for source in sources:
            removed = self._invalidate_source(source) or removed
        return removed

    def clear_cache(self) -> None:
        """Empty the body cache and the rendered output cache."""
        self._body_cache.clear()
        if self._render_cache is not None:
            self._render_cache.clear()
        self._logger.debug("Template cache cleared")

    def set_max_cache_size(self, max_size: int) -> None:
        """Cap the number of cached templates.

        A cache already holding more than ``max_size`` entries is cleared.
        """
        if len(self._body_cache) > max_size:
            self.clear_cache()
        self._body_cache.set_capacity(max_size)
        if self._render_cache is not None:
            self._render_cache.set_capacity(max_size)

    def set_delimiters(self, open_delim: str, close_delim: str) -> None:
        """Change placeholder delimiters (drops cached rendered output).

        Raises:
            ValueError: If either delimiter is empty
        """
        self._check_delimiters(open_delim, close_delim)
        self._open_delim = open_delim
        self._close_delim = close_delim
        if self._render_cache is not None:
            self._render_cache.clear()

    def create_template_folder(
        self,
        template_path: str | None = None,
        files: Sequence[str] = DEFAULT_SITE_FILES,
    ) -> Path:
        """Locate or download a directory of site templates.

        Args:
            template_path: Local directory (relative to the working
                directory), a URL to download ``files`` from, or None for
                the default template URL
            files: File names to download for URLs

        Returns:
            Path of the template directory

        Raises:
            TemplateError: NOT_FOUND for a missing local directory, ENGINE
                (wrapping the REMOTE cause) if a download fails
        """
        if template_path is None:
            template_path = DEFAULT_TEMPLATE_URL

        if is_url(template_path):
            return self._download_files(template_path, files)

        local_path = Path(template_path)
        if not local_path.is_absolute():
            local_path = Path.cwd() / local_path
        if local_path.is_dir():
            return local_path

        raise self._errors.create(
            "TEMPLATE_NOT_FOUND",
            template_name=template_path,
            detail=f"Template directory not found: {local_path}",
        )

    def close(self) -> None:
        """Release the HTTP client of an engine-owned RemoteLoader."""
        if self._owns_remote_loader and isinstance(self._remote_loader, RemoteLoader):
            self._remote_loader.close()

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _is_file(path: Path) -> bool:
        try:
            return path.is_file()
        except (OSError, ValueError):
            return False

    @staticmethod
    def _check_delimiters(open_delim: str, close_delim: str) -> None:
        if not open_delim or not close_delim:
            raise ValueError("Delimiters must not be empty")

    def _merge_context(
        self,
        context: Context | Mapping[str, Any],
        options: PageOptions | None,
    ) -> Context:
        explicit = context if isinstance(context, Context) else Context(context)
        if options is None:
            return explicit
        return options.to_context().merge(explicit)

    def _lock_for(self, key: SourceKey) -> threading.Lock:
        with self._load_locks_guard:
            lock = self._load_locks.get(key)
            if lock is None:
                lock = self._load_locks[key] = threading.Lock()
            return lock

    def _release_lock(self, key: SourceKey, lock: threading.Lock) -> None:
        """Forget the load lock once nobody holds it.

        Threads already waiting keep their reference and re-check the cache.
        """
        with self._load_locks_guard:
            if self._load_locks.get(key) is lock and not lock.locked():
                del self._load_locks[key]

    def _get_body(self, source: TemplateSource) -> tuple[str, bool]:
        """Cached body for ``source``, loading it on a miss.

        Returns:
            (body, cache_hit)
        """
        key = source.key
        body = self._body_cache.get(key)
        if body is not None:
            record_cache_lookup(MetricLabels.CACHE_BODY, True)
            self._logger.debug("Template cache hit", template=source.name, source=str(key))
            return body, True

        record_cache_lookup(MetricLabels.CACHE_BODY, False)
        lock = self._lock_for(key)
        try:
            with lock:
                # Another thread may have loaded it while we waited
                body = self._body_cache.get(key)
                if body is not None:
                    return body, True
                body = self._load(source)
                self._body_cache.set(key, body)
        finally:
            self._release_lock(key, lock)
        return body, False

    def _load(self, source: TemplateSource) -> str:
        """Read the body from its source.

        Raises:
            TemplateError: NOT_FOUND, IO or REMOTE failure
        """
        start = time.perf_counter()
        success = False
        try:
            if source.kind is SourceKind.STRING:
                body = self._strings.load(source.name)
            elif source.kind is SourceKind.FILE:
                body = self._file_loader.read(Path(source.location)).decode("utf-8")
            else:
                body = self._remote_loader.fetch(source.location).decode("utf-8")
            success = True
        except KeyError as e:
            # Unregistered between resolve and load
            raise self._errors.create(
                "TEMPLATE_NOT_FOUND",
                template_name=source.name,
                detail="The string template was unregistered",
            ) from e
        except Exception as e:
            error = self._errors.from_exception(
                e,
                template_name=source.name,
                source=source.location,
                url=source.location,
                timeout_seconds=getattr(self._remote_loader, "timeout", None),
            )
            self._logger.warning(
                "Template load failed",
                template=source.name,
                source_kind=source.kind.value,
                location=source.location,
                error_code=error.code,
            )
            raise error from e
        finally:
            record_template_load(source.kind.value, time.perf_counter() - start, success)

        self._logger.info(
            "Template loaded",
            template=source.name,
            source_kind=source.kind.value,
            location=source.location,
        )
        return body

    def _invalidate_source(self, source: TemplateSource) -> bool:
        removed = self._body_cache.invalidate(source.key)
        if self._render_cache is not None:
            prefix = str(source.key)
            for render_key, _ in self._render_cache.items():
                if render_key[0] == prefix:
                    self._render_cache.invalidate(render_key)
        return removed

    def _substitute(self, body: str, values: Context, template_name: str | None) -> str:
        """Replace placeholders in one forward pass.

        Substituted values are never rescanned.

        Raises:
            TemplateError: TEMPLATE_INVALID or TEMPLATE_MISSING_VARIABLE
                under the ``error`` missing policy
        """
        strict = self.missing is MissingPolicy.ERROR
        if strict:
            if not body.strip():
                raise self._errors.create(
                    "TEMPLATE_INVALID", template_name=template_name, detail="Template is empty"
                )
            errors = self.validate(body)
            if errors:
                raise self._errors.create(
                    "TEMPLATE_INVALID", template_name=template_name, detail="; ".join(errors)
                )

        parts: list[str] = []
        last = 0
        placeholders = scan(
            body, self._open_delim, self._close_delim, trim_whitespace=self.trim_whitespace
        )
        for placeholder in placeholders:
            value = values.get(placeholder.name)
            if value is None:
                if strict:
                    raise self._errors.create(
                        "TEMPLATE_MISSING_VARIABLE",
                        variable=placeholder.name,
                        template_name=template_name,
                    )
                if self.missing is MissingPolicy.EMPTY:
                    value = ""
                else:
                    value = body[placeholder.start : placeholder.end]
            parts.append(body[last : placeholder.start])
            parts.append(value)
            last = placeholder.end
        parts.append(body[last:])
        return "".join(parts)

    def _download_files(self, url: str, files: Sequence[str]) -> Path:
        """Download ``files`` from ``url`` into a new temporary directory."""
        destination = Path(tempfile.mkdtemp(prefix="staticweave-"))
        base_url = url.rstrip("/")
        for file_name in files:
            file_url = f"{base_url}/{file_name}"
            try:
                data = self._remote_loader.fetch(file_url)
            except Exception as e:
                shutil.rmtree(destination, ignore_errors=True)
                cause = self._errors.from_exception(
                    e,
                    template_name=file_name,
                    source=file_url,
                    url=file_url,
                    timeout_seconds=getattr(self._remote_loader, "timeout", None),
                )
                raise self._errors.wrap(
                    cause,
                    template_name=file_name,
                    detail=f"Downloading the template folder from {url} failed at {file_name}",
                ) from e
            (destination / file_name).write_bytes(data)
            self._logger.debug("Downloaded template file", location=file_url)
        self._logger.info("Template folder downloaded", location=url, files=len(files))
        return destination
