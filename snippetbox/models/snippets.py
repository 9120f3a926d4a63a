# snippetbox/models/snippets.py
from datetime import timedelta
from typing import List

from sqlalchemy import select

from snippetbox.core.exceptions import NoRecordError
from snippetbox.models.database import Database, Snippet, utc_now


class SnippetModel:
    """Snippet storage. Expired snippets are invisible to get() and latest()."""

    def __init__(self, db: Database):
        self.db = db

    def insert(self, title: str, content: str, expires: int) -> int:
        """Store a snippet that expires `expires` days from now and return its id"""
        now = utc_now()
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires),
        )
        with self.db.session_factory() as session, session.begin():
            session.add(snippet)
        return snippet.id

    def get(self, snippet_id: int) -> Snippet:
        stmt = select(Snippet).where(Snippet.id == snippet_id, Snippet.expires > utc_now())
        with self.db.session_factory() as session:
            snippet = session.scalars(stmt).first()
        if snippet is None:
            raise NoRecordError(record_id=snippet_id)
        return snippet

    def latest(self, limit: int = 10) -> List[Snippet]:
        stmt = (
            select(Snippet)
            .where(Snippet.expires > utc_now())
            .order_by(Snippet.id.desc())
            .limit(limit)
        )
        with self.db.session_factory() as session:
            return list(session.scalars(stmt))
