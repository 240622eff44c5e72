import logging

from flask import (
    Blueprint, Flask, current_app, flash, make_response, redirect, render_template, request,
    send_from_directory, url_for,
)

from admin_gate import AdminGate
from config import Config
from errors import BoardError
from logger import get_logger, setup_logging
from media_store import MediaStore
from models import db
from repositories import ArticleRepository, CommentRepository
from workflows import (
    CHECK, DeletionWorkflow, EditConfirmation, EditWorkflow, PublishWorkflow,
)

MAIN_PAGE_TITLE = "All Articles"

bp = Blueprint("board", __name__)
logger = get_logger(__name__)


class Board:
    """Components shared by every request of one app."""

    def __init__(self, config, clock=None):
        self.media_store = MediaStore(
            config["UPLOAD_FOLDER"], prefix=config["MEDIA_PREFIX"],
            logger=get_logger("board.media"),
        )
        self.gate = AdminGate(config["ADMIN_PASSWORD"])
        self.articles = ArticleRepository(clock=clock, logger=get_logger("board.articles"))
        self.comments = CommentRepository(clock=clock, logger=get_logger("board.comments"))

        extensions = config["ALLOWED_MEDIA_EXTENSIONS"]
        workflow_log = get_logger("board.workflows")
        self.publishing = PublishWorkflow(
            self.articles, self.comments, self.media_store, extensions, workflow_log
        )
        self.edits = EditWorkflow(
            self.gate, self.articles, self.media_store, extensions, workflow_log
        )
        self.deletions = DeletionWorkflow(
            self.gate, self.articles, self.comments, workflow_log
        )


def board():
    return current_app.extensions["board"]


def create_app(config_object=Config, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    if not logging.getLogger().handlers:
        setup_logging(app.config.get("LOG_LEVEL", "INFO"), app.config.get("LOG_DIR"))

    db.init_app(app)
    app.extensions["board"] = Board(app.config, clock=clock)
    app.register_blueprint(bp)

    with app.app_context():
        db.create_all()

    return app


# ===== Errors =====
@bp.app_errorhandler(BoardError)
def handle_board_error(e):
    if e.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.path, e.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.path, e.message)

    response = make_response(render_template("error.html", error=e), e.status_code)
    if e.retryable:
        response.headers["Retry-After"] = "1"
    return response


# ===== Articles =====
@bp.route("/")
def new_article_form():
    return render_template("new_article.html")


@bp.route("/submit", methods=["POST"])
def submit_article():
    title = request.form.get("title", "").strip()
    body = request.form.get("body", "").strip()
    uploads = request.files.getlist("media")

    article_id = board().publishing.publish(title, body, uploads)
    logger.info("Article %s submitted", article_id)
    return redirect(url_for("board.list_articles"))


@bp.route("/articles")
def list_articles():
    articles = board().articles.list()
    return render_template("articles.html", title=MAIN_PAGE_TITLE, articles=articles)


@bp.route("/articles/<int:article_id>")
def view_article(article_id):
    article = board().articles.get(article_id)
    comments = board().comments.list_for_article(article_id)
    return render_template("article.html", article=article, comments=comments)


@bp.route("/articles/<int:article_id>/comment", methods=["POST"])
def submit_comment(article_id):
    text = request.form.get("comment", "").strip()
    board().publishing.comment(article_id, text)
    return redirect(url_for("board.view_article", article_id=article_id))


# ===== Admin: delete =====
@bp.route("/articles/<int:article_id>/delete", methods=["GET"])
def delete_article_form(article_id):
    return render_template(
        "password.html",
        heading="Enter Password to Delete Article",
        action=url_for("board.delete_article", article_id=article_id),
        submit_label="Delete Article",
    )


@bp.route("/articles/<int:article_id>/delete", methods=["POST"])
def delete_article(article_id):
    board().deletions.delete_article(article_id, request.form.get("password", ""))
    flash("Article deleted.", "info")
    return redirect(url_for("board.list_articles"))


@bp.route("/comments/<int:comment_id>/delete", methods=["GET"])
def delete_comment_form(comment_id):
    return render_template(
        "password.html",
        heading="Enter Password to Delete Comment",
        action=url_for("board.delete_comment", comment_id=comment_id),
        submit_label="Delete Comment",
    )


@bp.route("/comments/<int:comment_id>/delete", methods=["POST"])
def delete_comment(comment_id):
    article_id = board().deletions.delete_comment(comment_id, request.form.get("password", ""))
    flash("Comment deleted.", "info")
    if article_id is None:
        return redirect(url_for("board.list_articles"))
    return redirect(url_for("board.view_article", article_id=article_id))


# ===== Admin: edit =====
@bp.route("/articles/<int:article_id>/edit", methods=["GET"])
def edit_article_form(article_id):
    return render_template(
        "password.html",
        heading="Enter Password to Edit Article",
        action=url_for("board.edit_article", article_id=article_id),
        submit_label="Continue",
        mode=CHECK,
    )


@bp.route("/articles/<int:article_id>/edit", methods=["POST"])
def edit_article(article_id):
    result = board().edits.handle(
        article_id,
        mode=request.form.get("mode", ""),
        password=request.form.get("password", ""),
        title=request.form.get("title", "").strip(),
        body=request.form.get("body", "").strip(),
        upload=request.files.get("media"),
    )
    if isinstance(result, EditConfirmation):
        return render_template("edit_article.html", edit=result)

    flash("Article updated.", "success")
    return redirect(url_for("board.view_article", article_id=article_id))


# Serve files saved under UPLOAD_FOLDER
@bp.route("/uploads/<path:filename>")
def uploaded_file(filename):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)


# Local dev entrypoint (use `gunicorn "app:create_app()"` elsewhere)
if __name__ == "__main__":
    create_app().run(debug=True, host="127.0.0.1", port=8080)
