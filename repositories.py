import logging
import time
from collections import namedtuple
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from errors import DependencyError, NotFound, ValidationError
from models import db, Article, ArticleMedia, Comment

ArticleSummary = namedtuple("ArticleSummary", ["id", "title"])
CommentView = namedtuple("CommentView", ["id", "text"])


def unix_now():
    return int(time.time())


def _blank(value):
    return not value or not value.strip()


class _Repository:
    def __init__(self, clock=None, logger=None):
        self.clock = clock or unix_now
        self.log = logger or logging.getLogger(__name__)

    @contextmanager
    def _unit_of_work(self, action):
        """Commit everything done inside the block, or none of it."""
        try:
            yield db.session
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.log.error("Failed to %s: %s", action, e)
            raise DependencyError(f"Failed to {action}") from e
        except Exception:
            db.session.rollback()
            raise

    @contextmanager
    def _reading(self, action):
        try:
            yield db.session
        except SQLAlchemyError as e:
            db.session.rollback()
            self.log.error("Failed to %s: %s", action, e)
            raise DependencyError(f"Failed to {action}") from e

    def _load_article(self, article_id):
        article = db.session.get(Article, article_id)
        if article is None:
            raise NotFound(f"Article {article_id} not found")
        return article

    def _bump(self, article):
        # never move an article down, even if the clock goes backwards
        article.bump_time = max(article.bump_time or 0, self.clock())


class ArticleRepository(_Repository):

    def create(self, title, body, media_paths):
        media_paths = list(media_paths or [])
        if _blank(title) or _blank(body):
            raise ValidationError("Title and body are required")
        if not media_paths:
            raise ValidationError("Media file is required")

        with self._unit_of_work("store article"):
            article = Article(title=title, body=body, bump_time=self.clock())
            article.media = [ArticleMedia(media_path=p) for p in media_paths]
            db.session.add(article)
            db.session.flush()
            article_id = article.id

        self.log.info("Created article %s with %d media file(s)", article_id, len(media_paths))
        return article_id

    def get(self, article_id):
        """The article with its media already loaded."""
        with self._reading("fetch article"):
            article = db.session.scalars(
                db.select(Article)
                .options(selectinload(Article.media))
                .where(Article.id == article_id)
                .execution_options(populate_existing=True)
            ).first()
        if article is None:
            raise NotFound(f"Article {article_id} not found")
        return article

    def list(self):
        """Article summaries, most recently bumped first."""
        with self._reading("fetch articles"):
            rows = db.session.execute(
                db.select(Article.id, Article.title)
                .order_by(Article.bump_time.desc(), Article.id.desc())
            ).all()
        return [ArticleSummary(r.id, r.title) for r in rows]

    def _replace_media(self, article_id, new_path):
        if _blank(new_path):
            raise ValidationError("Replacement media path is empty")
        db.session.execute(
            db.delete(ArticleMedia).where(ArticleMedia.article_id == article_id)
        )
        db.session.add(ArticleMedia(article_id=article_id, media_path=new_path))

    def replace_media(self, article_id, new_path):
        with self._unit_of_work("replace article media"):
            self._load_article(article_id)
            self._replace_media(article_id, new_path)
        self.log.info("Replaced media of article %s with %s", article_id, new_path)

    def update(self, article_id, title, body, new_media_path=None):
        """Save edited fields and bump the article; optionally swap its media."""
        if _blank(title) or _blank(body):
            raise ValidationError("Title and body are required")

        with self._unit_of_work("update article"):
            article = self._load_article(article_id)
            article.title = title
            article.body = body
            self._bump(article)
            if new_media_path is not None:
                self._replace_media(article_id, new_media_path)

        self.log.info("Updated article %s", article_id)

    def delete(self, article_id):
        with self._unit_of_work("delete article"):
            self._load_article(article_id)
            db.session.execute(
                db.delete(ArticleMedia).where(ArticleMedia.article_id == article_id)
            )
            db.session.execute(db.delete(Comment).where(Comment.article_id == article_id))
            db.session.execute(db.delete(Article).where(Article.id == article_id))

        self.log.info("Deleted article %s", article_id)


class CommentRepository(_Repository):

    def create(self, article_id, text):
        if _blank(text):
            raise ValidationError("Comment text is required")

        with self._unit_of_work("store comment"):
            article = self._load_article(article_id)
            comment = Comment(article_id=article.id, comment=text)
            db.session.add(comment)
            self._bump(article)
            db.session.flush()
            comment_id = comment.id

        self.log.info("Comment %s added to article %s", comment_id, article_id)
        return comment_id

    def list_for_article(self, article_id):
        with self._reading("fetch comments"):
            rows = db.session.execute(
                db.select(Comment.id, Comment.comment)
                .where(Comment.article_id == article_id)
                .order_by(Comment.id)
            ).all()
        return [CommentView(r.id, r.comment) for r in rows]

    def delete(self, comment_id):
        """Delete a comment and return the id of the article it belonged to.

        Returns None when that article no longer exists. A comment removed by
        another request between the lookup and the delete counts as deleted.
        """
        with self._reading("look up comment"):
            comment = db.session.get(Comment, comment_id)
            if comment is None:
                raise NotFound(f"Comment {comment_id} not found")
            owner_id = comment.article_id
            if db.session.get(Article, owner_id) is None:
                owner_id = None

        with self._unit_of_work("delete comment"):
            result = db.session.execute(db.delete(Comment).where(Comment.id == comment_id))

        if result.rowcount == 0:
            self.log.info("Comment %s was already deleted", comment_id)
        else:
            self.log.info("Deleted comment %s", comment_id)
        return owner_id
