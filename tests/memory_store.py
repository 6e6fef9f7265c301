"""In-memory stand-in for :class:`event_clustering.services.storage.EventStore`.

Implements the same methods with plain dicts so the clustering engine can be
exercised end to end without a MongoDB server.
"""

from dataclasses import replace

from event_clustering.models import STATUS_ACTIVE, STATUS_STALE, Article, Event
from event_clustering.services.similarity import update_centroid
from event_clustering.services.storage import (
    ArticleAlreadyClusteredError,
    EventNotFoundError,
    dominant_language,
)


class InMemoryEventStore:

    def __init__(self):
        self.articles = {}
        self.events = {}
        self.outlets = {}
        self.leases = {}
        self.fail_next_write = None
        self._next_event = 0

    # -- seeding helpers ---------------------------------------------------
    def add_article(self, article_id, embedding, fetched_at, published_at=None,
                    language=None, outlet_id=None, title=None, event_id=None):
        self.articles[article_id] = Article(
            id=article_id,
            title=title if title is not None else f"Headline {article_id}",
            url=f"https://example.com/{article_id}",
            outlet_id=outlet_id,
            language=language,
            embedding=embedding,
            published_at=published_at,
            fetched_at=fetched_at,
            event_id=event_id,
        )
        return self.articles[article_id]

    def add_event(self, event_id, centroid_embedding, last_updated_at, article_count=1,
                  status=STATUS_ACTIVE, language=None):
        self.events[event_id] = Event(
            id=event_id,
            title=f"Event {event_id}",
            centroid_embedding=centroid_embedding,
            article_count=article_count,
            status=status,
            first_seen_at=last_updated_at,
            last_updated_at=last_updated_at,
            language=language,
            language_counts={language: article_count} if language else {},
        )
        return self.events[event_id]

    def members_of(self, event_id):
        return [a for a in self.articles.values() if a.event_id == event_id]

    # -- EventStore interface ----------------------------------------------
    def find_unclustered_articles(self, fetched_since):
        candidates = [
            replace(a) for a in self.articles.values()
            if a.event_id is None and a.embedding is not None and a.fetched_at >= fetched_since
        ]
        # Undated articles go last
        return sorted(
            candidates,
            key=lambda a: (a.published_at is None, a.published_at or a.fetched_at, a.id),
        )

    def find_active_events(self, updated_since):
        active = [
            replace(e, language_counts=dict(e.language_counts)) for e in self.events.values()
            if e.status == STATUS_ACTIVE and e.last_updated_at >= updated_since
        ]
        return sorted(active, key=lambda e: (e.first_seen_at, e.id))

    def get_event(self, event_id):
        return self.events.get(event_id)

    def get_outlet_languages(self, outlet_ids):
        return {oid: self.outlets[oid] for oid in outlet_ids if oid in self.outlets}

    def find_event_members(self, event_id):
        return self.members_of(event_id)

    def _maybe_fail(self):
        if self.fail_next_write is not None:
            exc, self.fail_next_write = self.fail_next_write, None
            raise exc

    def _check_unclustered(self, article_id):
        article = self.articles.get(article_id)
        if article is None or article.event_id is not None:
            raise ArticleAlreadyClusteredError(article_id)
        return article

    def assign_article_to_event(self, article_id, event_id, embedding, language=None, now=None):
        self._maybe_fail()
        stored = self.events.get(event_id)
        if stored is None or not stored.centroid_embedding:
            raise EventNotFoundError(event_id)
        article = self._check_unclustered(article_id)

        counts = dict(stored.language_counts)
        if language:
            counts[language] = counts.get(language, 0) + 1
        updated = replace(
            stored,
            centroid_embedding=update_centroid(stored.centroid_embedding, embedding, stored.article_count),
            article_count=stored.article_count + 1,
            last_updated_at=now,
            language_counts=counts,
            language=dominant_language(counts) if language else stored.language,
        )
        article.event_id = event_id
        self.events[event_id] = updated
        return replace(updated, language_counts=dict(counts))

    def create_event_from_article(self, article_id, title, embedding, language=None, now=None):
        self._maybe_fail()
        article = self._check_unclustered(article_id)
        self._next_event += 1
        event = Event(
            id=f"evt-{self._next_event}",
            title=title,
            centroid_embedding=list(embedding),
            article_count=1,
            first_seen_at=now,
            last_updated_at=now,
            language=language,
            language_counts={language: 1} if language else {},
        )
        self.events[event.id] = event
        article.event_id = event.id
        return replace(event, language_counts=dict(event.language_counts))

    def mark_stale_events(self, cutoff):
        count = 0
        for event in self.events.values():
            if event.status == STATUS_ACTIVE and event.last_updated_at < cutoff:
                event.status = STATUS_STALE
                count += 1
        return count

    def replace_centroid(self, event_id, centroid_embedding, article_count, language_counts, now=None):
        self._maybe_fail()
        event = self.events[event_id]
        event.centroid_embedding = centroid_embedding
        event.article_count = article_count
        event.language_counts = dict(language_counts)
        event.language = dominant_language(language_counts)
        if now is not None:
            event.last_updated_at = now

    def acquire_lease(self, name, holder, ttl_seconds, now=None):
        current = self.leases.get(name)
        if current is not None and current != holder:
            return False
        self.leases[name] = holder
        return True

    def release_lease(self, name, holder):
        if self.leases.get(name) == holder:
            del self.leases[name]
