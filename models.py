import sqlite3

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

db = SQLAlchemy()


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cur = dbapi_connection.cursor()
        cur.execute("PRAGMA foreign_keys = ON;")
        cur.close()


class Article(db.Model):
    __tablename__ = "articles"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.Text, nullable=False)
    body = db.Column(db.Text, nullable=False)
    bump_time = db.Column(db.BigInteger, nullable=False, index=True)  # unix seconds

    media = db.relationship(
        "ArticleMedia", backref="article", order_by="ArticleMedia.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    comments = db.relationship(
        "Comment", backref="article", order_by="Comment.id",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    @property
    def media_paths(self):
        return [m.media_path for m in self.media]

    def __repr__(self):
        return f"<Article(id={self.id}, title='{self.title[:30]}', bump_time={self.bump_time})>"


class ArticleMedia(db.Model):
    __tablename__ = "article_media"

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(
        db.Integer, db.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    media_path = db.Column(db.Text, nullable=False)  # relative to UPLOAD_FOLDER


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(
        db.Integer, db.ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    comment = db.Column(db.Text, nullable=False)
