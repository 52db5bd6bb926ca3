"""Sitemap configuration.

A typed settings object with validated defaults. Builders read it once at
construction time; the fluent setters re-check the same constraints as the
constructor.
"""

from typing import Any, Dict, Mapping, Optional

from sitemap_errors import InvalidConfigError, SitemapValidationError
from sitemap_generator import SUPPORTED_FORMATS
from sitemap_validator import validate_url


# Configuration Constants
DEFAULT_MAX_SIZE: int = 10485760  # 10MB
DEFAULT_FORMAT: str = 'xml'


class SitemapConfig:
    """Settings shared by the item store, the builder and its renderers.

    Attributes:
        escaping: Entity-escape string fields before storing items.
        use_cache: Caching knob for framework adapters.
        cache_path: Cache location for framework adapters.
        use_limit_size: Size limiting knob for framework adapters.
        max_size: Maximum sitemap size in bytes, must be positive.
        use_gzip: Compression knob for framework adapters.
        use_styles: Emit XSL stylesheet instructions when a style is given.
        domain: Base domain, must be an http(s) URL when set.
        strict_mode: Validate items before storing them.
        default_format: Format used when ``render`` gets none.
    """

    def __init__(
        self,
        escaping: bool = True,
        use_cache: bool = False,
        cache_path: Optional[str] = None,
        use_limit_size: bool = False,
        max_size: int = DEFAULT_MAX_SIZE,
        use_gzip: bool = False,
        use_styles: bool = True,
        domain: Optional[str] = None,
        strict_mode: bool = False,
        default_format: str = DEFAULT_FORMAT,
    ) -> None:
        _check_max_size(max_size)
        _check_domain(domain)
        _check_format(default_format)

        self._escaping = bool(escaping)
        self._use_cache = bool(use_cache)
        self._cache_path = cache_path
        self._use_limit_size = bool(use_limit_size)
        self._max_size = max_size
        self._use_gzip = bool(use_gzip)
        self._use_styles = bool(use_styles)
        self._domain = domain
        self._strict_mode = bool(strict_mode)
        self._default_format = default_format

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> 'SitemapConfig':
        """Create a configuration from a snake_case mapping.

        Missing keys fall back to the constructor defaults.

        Args:
            config: Mapping with keys such as ``escaping`` or ``max_size``.

        Returns:
            New SitemapConfig instance.
        """
        return cls(
            escaping=config.get('escaping', True),
            use_cache=config.get('use_cache', False),
            cache_path=config.get('cache_path'),
            use_limit_size=config.get('use_limit_size', False),
            max_size=config.get('max_size', DEFAULT_MAX_SIZE),
            use_gzip=config.get('use_gzip', False),
            use_styles=config.get('use_styles', True),
            domain=config.get('domain'),
            strict_mode=config.get('strict_mode', False),
            default_format=config.get('default_format', DEFAULT_FORMAT),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export the configuration as a snake_case mapping."""
        return {
            'escaping': self._escaping,
            'use_cache': self._use_cache,
            'cache_path': self._cache_path,
            'use_limit_size': self._use_limit_size,
            'max_size': self._max_size,
            'use_gzip': self._use_gzip,
            'use_styles': self._use_styles,
            'domain': self._domain,
            'strict_mode': self._strict_mode,
            'default_format': self._default_format,
        }

    from_array = from_dict
    to_array = to_dict

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SitemapConfig):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ', '.join(f"{key}={value!r}" for key, value in self.to_dict().items())
        return f"SitemapConfig({fields})"

    @property
    def escaping(self) -> bool:
        return self._escaping

    def set_escaping(self, escaping: bool) -> 'SitemapConfig':
        self._escaping = bool(escaping)
        return self

    @property
    def use_cache(self) -> bool:
        return self._use_cache

    def set_use_cache(self, use_cache: bool) -> 'SitemapConfig':
        self._use_cache = bool(use_cache)
        return self

    @property
    def cache_path(self) -> Optional[str]:
        return self._cache_path

    def set_cache_path(self, cache_path: Optional[str]) -> 'SitemapConfig':
        self._cache_path = cache_path
        return self

    @property
    def use_limit_size(self) -> bool:
        return self._use_limit_size

    def set_use_limit_size(self, use_limit_size: bool) -> 'SitemapConfig':
        self._use_limit_size = bool(use_limit_size)
        return self

    @property
    def max_size(self) -> int:
        return self._max_size

    def set_max_size(self, max_size: int) -> 'SitemapConfig':
        """Set the maximum size in bytes; must be greater than 0."""
        _check_max_size(max_size)
        self._max_size = max_size
        return self

    @property
    def use_gzip(self) -> bool:
        return self._use_gzip

    def set_use_gzip(self, use_gzip: bool) -> 'SitemapConfig':
        self._use_gzip = bool(use_gzip)
        return self

    @property
    def use_styles(self) -> bool:
        return self._use_styles

    def set_use_styles(self, use_styles: bool) -> 'SitemapConfig':
        self._use_styles = bool(use_styles)
        return self

    @property
    def domain(self) -> Optional[str]:
        return self._domain

    def set_domain(self, domain: Optional[str]) -> 'SitemapConfig':
        """Set the base domain; None clears it."""
        _check_domain(domain)
        self._domain = domain
        return self

    @property
    def strict_mode(self) -> bool:
        return self._strict_mode

    def set_strict_mode(self, strict_mode: bool) -> 'SitemapConfig':
        self._strict_mode = bool(strict_mode)
        return self

    @property
    def default_format(self) -> str:
        return self._default_format

    def set_default_format(self, default_format: str) -> 'SitemapConfig':
        """Set the default render format; must be a registered format token."""
        _check_format(default_format)
        self._default_format = default_format
        return self


def _check_max_size(max_size: int) -> None:
    if isinstance(max_size, bool) or not isinstance(max_size, int) or max_size <= 0:
        raise InvalidConfigError(f"max_size must be greater than 0, got: {max_size!r}")


def _check_domain(domain: Optional[str]) -> None:
    if domain is None:
        return
    try:
        validate_url(domain)
    except SitemapValidationError as e:
        raise InvalidConfigError(f"Invalid domain: {domain!r}") from e


def _check_format(fmt: str) -> None:
    if fmt not in SUPPORTED_FORMATS:
        raise InvalidConfigError(
            f"Invalid default format: {fmt!r}, expected one of {', '.join(SUPPORTED_FORMATS)}"
        )
