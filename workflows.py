"""
workflows.py - Request-level operations on articles and comments.

Each workflow takes plain form values (and Werkzeug ``FileStorage`` uploads),
runs the admin check where one is needed and drives the repositories and the
media store. Failures are raised as ``errors.BoardError`` subclasses for the
web layer to render.
"""

import logging
from collections import namedtuple

from errors import InvalidRequest, ValidationError

DEFAULT_MEDIA_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "mp4"}

CHECK = "check"
SAVE = "save"

EditConfirmation = namedtuple(
    "EditConfirmation",
    ["article_id", "title", "body", "media_paths", "current_media", "password"],
)


def has_file(upload):
    return upload is not None and bool(getattr(upload, "filename", None))


def allowed_file(filename, extensions):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in extensions


def _blank(value):
    return not value or not value.strip()


class _MediaWorkflow:

    def _allowed(self, upload):
        # the stored name must keep an allowed extension too
        reference = self.media_store.reference_for(upload.filename)
        return (allowed_file(upload.filename, self.allowed_extensions)
                and allowed_file(reference, self.allowed_extensions))


class PublishWorkflow(_MediaWorkflow):
    """Anonymous article and comment submission."""

    def __init__(self, articles, comments, media_store,
                 allowed_extensions=None, logger=None):
        self.articles = articles
        self.comments = comments
        self.media_store = media_store
        self.allowed_extensions = allowed_extensions or DEFAULT_MEDIA_EXTENSIONS
        self.log = logger or logging.getLogger(__name__)

    def publish(self, title, body, uploads):
        uploads = [u for u in (uploads or []) if has_file(u)]
        if _blank(title) or _blank(body):
            raise ValidationError("Title and body are required")
        if not uploads:
            raise ValidationError("Media file is required")
        for upload in uploads:
            if not self._allowed(upload):
                raise ValidationError(f"Unsupported media type: {upload.filename}")

        # every file must be on disk before any row points at it
        media_paths = [self.media_store.store(u.filename, u.read()) for u in uploads]
        return self.articles.create(title, body, media_paths)

    def comment(self, article_id, text):
        return self.comments.create(article_id, text)


class EditWorkflow(_MediaWorkflow):
    """Two-phase edit: ``check`` shows the current article, ``save`` commits.

    No session state is kept between the phases. The confirmation handed back
    by ``check`` echoes the password so the edit form can resubmit it, and
    ``save`` verifies it again.
    """

    def __init__(self, gate, articles, media_store,
                 allowed_extensions=None, logger=None):
        self.gate = gate
        self.articles = articles
        self.media_store = media_store
        self.allowed_extensions = allowed_extensions or DEFAULT_MEDIA_EXTENSIONS
        self.log = logger or logging.getLogger(__name__)

    def handle(self, article_id, mode, password, title=None, body=None, upload=None):
        self.gate.require(password, "article editing")
        if mode == CHECK:
            return self.check(article_id, password)
        if mode == SAVE:
            return self.save(article_id, password, title, body, upload)
        self.log.warning("Invalid mode %r for edit of article %s", mode, article_id)
        raise InvalidRequest("Invalid mode")

    def check(self, article_id, password):
        self.gate.require(password, "article editing")
        article = self.articles.get(article_id)
        media_paths = article.media_paths
        return EditConfirmation(
            article_id=article.id,
            title=article.title,
            body=article.body,
            media_paths=media_paths,
            current_media=media_paths[0] if media_paths else None,
            password=password,
        )

    def save(self, article_id, password, title, body, upload=None):
        self.gate.require(password, "article editing")
        if _blank(title) or _blank(body):
            self.log.warning("Edit of article %s rejected: title/body empty", article_id)
            raise ValidationError("Title and body are required")

        new_media = None
        if has_file(upload):
            if not self._allowed(upload):
                raise ValidationError(f"Unsupported media type: {upload.filename}")
            data = upload.read()
            # an empty file field means "keep the current media"
            if data:
                # make sure the article is still there before writing the file
                self.articles.get(article_id)
                new_media = self.media_store.store(upload.filename, data)

        self.articles.update(article_id, title, body, new_media_path=new_media)
        return article_id


class DeletionWorkflow:

    def __init__(self, gate, articles, comments, logger=None):
        self.gate = gate
        self.articles = articles
        self.comments = comments
        self.log = logger or logging.getLogger(__name__)

    def delete_article(self, article_id, password):
        self.gate.require(password, "article deletion")
        self.articles.delete(article_id)

    def delete_comment(self, comment_id, password):
        """Returns the article to go back to, or None for the listing page."""
        self.gate.require(password, "comment deletion")
        return self.comments.delete(comment_id)
