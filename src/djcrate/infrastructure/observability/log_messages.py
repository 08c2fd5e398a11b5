"""Structured log message templates for consistent, human-readable logging.

Hey future me - instead of "lookup failed: ReadTimeout" you get:

    🔴 getsongbpm Lookup Failed
    ├─ Item: Daft Punk - One More Time
    ├─ Reason: getsongbpm request failed: ReadTimeout
    └─ 💡 Result counts as a miss; the next source in the chain gets the track

Principles:
1. **Icon First** - visual marker for quick scanning (🔴 error, ⚠️ warning, ✅ success)
2. **Action/Entity** - what failed or finished
3. **Context** - track, artist, counts
4. **Hints** - what happens next or what to check

Usage:
    from djcrate.infrastructure.observability.log_messages import LogMessages

    logger.warning(LogMessages.source_failed(source="musicbrainz", item="Bicep", error=str(e)))
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class LogTemplate:
    """A reusable log message template with placeholders.

    format() replaces {placeholders} with actual values and adds the tree layout.
    """

    icon: str
    title: str
    fields: dict[str, str]
    hint: str | None = None

    def format(self, **kwargs: Any) -> str:
        """Format the template with provided values.

        Args:
            **kwargs: Values to fill into template placeholders

        Returns:
            Formatted multi-line log message with icon, title, fields, and optional hint
        """
        lines = [f"{self.icon} {self.title}"]

        field_items = list(self.fields.items())
        for i, (key, value_template) in enumerate(field_items):
            # Last field uses └─ instead of ├─
            prefix = "└─" if i == len(field_items) - 1 and not self.hint else "├─"

            try:
                value = value_template.format(**kwargs)
            except (KeyError, IndexError) as e:
                value = f"<missing: {e}>"

            lines.append(f"{prefix} {key}: {value}")

        if self.hint:
            try:
                hint_text = self.hint.format(**kwargs)
            except (KeyError, IndexError) as e:
                hint_text = f"<missing: {e}>"
            lines.append(f"└─ 💡 {hint_text}")

        return "\n".join(lines)


def _literal(value: Any) -> str:
    """Escape braces so user data (track titles!) survives LogTemplate.format()."""
    return str(value).replace("{", "{{").replace("}", "}}")


class LogMessages:
    """Collection of standardized log message templates.

    Template categories:
    - Source failures and rate limiting
    - Cache store degradation
    - Enrichment run lifecycle
    """

    # === Sources ===

    @staticmethod
    def source_failed(
        source: str,
        item: str,
        error: str,
        hint: str | None = None,
    ) -> str:
        """Format a provider lookup failure.

        Args:
            source: Source name (e.g., "getsongbpm", "musicbrainz")
            item: What was looked up ("Artist - Title" or an artist name)
            error: Error message from exception
            hint: Custom hint
        """
        template = LogTemplate(
            icon="🔴",
            title=f"{source} Lookup Failed",
            fields={"Item": _literal(item), "Reason": _literal(error)},
            hint=hint or "Result counts as a miss; the next source gets the item",
        )
        return template.format()

    @staticmethod
    def source_rate_limited(source: str, retry_after: float | None = None) -> str:
        """Format a give-up-after-retries rate limit message."""
        template = LogTemplate(
            icon="⚠️",
            title=f"{source} Rate Limited",
            fields={
                "Retry-After": f"{retry_after:.0f}s" if retry_after is not None else "not provided"
            },
            hint="Request treated as a miss; lower concurrency if this keeps happening",
        )
        return template.format()

    @staticmethod
    def source_skipped(source: str, reason: str) -> str:
        """Format a source that was left out at construction time."""
        template = LogTemplate(
            icon="⚪",
            title=f"{source} Disabled",
            fields={"Reason": _literal(reason)},
            hint="Set its credentials in the environment or .env to enable it",
        )
        return template.format()

    # === Cache store ===

    @staticmethod
    def cache_unavailable(operation: str, error: str) -> str:
        """Format a cache store failure (the call continues without the store)."""
        template = LogTemplate(
            icon="⚠️",
            title="Track Cache Unavailable",
            fields={"Operation": operation, "Reason": _literal(error)},
            hint="Lookups continue without the store for this call",
        )
        return template.format()

    # === Enrichment runs ===

    @staticmethod
    def lookup_completed(kind: str, total: int, hits: int, cached: int = 0) -> str:
        """Format a lookup batch summary."""
        template = LogTemplate(
            icon="✅",
            title=f"{kind} Lookup Completed",
            fields={"Tracks": str(total), "Hits": str(hits), "From cache": str(cached)},
        )
        return template.format()

    @staticmethod
    def run_cancelled(kind: str, completed: int, total: int) -> str:
        """Format an enrichment run superseded by new input."""
        template = LogTemplate(
            icon="⏹️",
            title=f"{kind} Enrichment Cancelled",
            fields={"Progress": f"{completed}/{total}"},
            hint="A newer track list or seed replaced this run",
        )
        return template.format()


__all__ = ["LogMessages", "LogTemplate"]
