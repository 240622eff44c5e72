import os

import pytest

from conftest import PASSWORD
from errors import (
    InvalidRequest, NotFound, StorageWriteError, Unauthorized, ValidationError,
)
from workflows import EditConfirmation


@pytest.fixture
def published(board, make_upload):
    """An article with one image, published through the front door."""
    return board.publishing.publish("Title", "Body", [make_upload("cat.png")])


def uploaded_files(upload_dir):
    return sorted(os.listdir(upload_dir)) if upload_dir.exists() else []


# ===== Publishing =====
def test_publish_stores_media_and_creates_article(board, make_upload, upload_dir):
    article_id = board.publishing.publish(
        "Title", "Body", [make_upload("cat.png", b"cat"), make_upload("dog.mp4", b"dog")]
    )

    article = board.articles.get(article_id)
    assert article.media_paths == ["article_cat.png", "article_dog.mp4"]
    assert (upload_dir / "article_cat.png").read_bytes() == b"cat"
    assert (upload_dir / "article_dog.mp4").read_bytes() == b"dog"


def test_publish_skips_empty_file_fields(board, make_upload):
    article_id = board.publishing.publish(
        "Title", "Body", [make_upload(""), make_upload("cat.png")]
    )
    assert board.articles.get(article_id).media_paths == ["article_cat.png"]


@pytest.mark.parametrize(
    "title, body, names",
    [
        ("Title", "Body", []),
        ("Title", "Body", [""]),
        ("", "Body", ["cat.png"]),
        ("Title", "", ["cat.png"]),
        ("Title", "Body", ["notes.txt"]),
        ("Title", "Body", ["cat.png", "script.exe"]),
    ],
)
def test_publish_rejects_before_writing_files(board, make_upload, upload_dir, title, body, names):
    with pytest.raises(ValidationError):
        board.publishing.publish(title, body, [make_upload(n) for n in names])

    assert uploaded_files(upload_dir) == []
    assert board.articles.list() == []


def test_publish_comment(board, published):
    comment_id = board.publishing.comment(published, "nice")
    assert board.comments.list_for_article(published)[-1] == (comment_id, "nice")


# ===== Editing =====
def test_check_with_wrong_password_leaves_article_alone(board, published):
    with pytest.raises(Unauthorized):
        board.edits.check(published, "wrong")

    article = board.articles.get(published)
    assert (article.title, article.body) == ("Title", "Body")


def test_check_returns_current_data_and_echoes_password(board, published):
    confirmation = board.edits.check(published, PASSWORD)

    assert confirmation == EditConfirmation(
        article_id=published,
        title="Title",
        body="Body",
        media_paths=["article_cat.png"],
        current_media="article_cat.png",
        password=PASSWORD,
    )


def test_check_missing_article(board):
    with pytest.raises(NotFound):
        board.edits.check(404, PASSWORD)


def test_save_without_media_keeps_original_media(board, published, clock):
    before = board.articles.get(published).bump_time
    clock.advance(60)

    assert board.edits.save(published, PASSWORD, "T2", "B2") == published

    article = board.articles.get(published)
    assert (article.title, article.body) == ("T2", "B2")
    assert article.media_paths == ["article_cat.png"]
    assert article.bump_time > before


def test_save_with_media_replaces_all_references(board, make_upload, upload_dir):
    article_id = board.publishing.publish(
        "Title", "Body", [make_upload("one.png"), make_upload("two.png")]
    )

    board.edits.save(article_id, PASSWORD, "T2", "B2", make_upload("fresh.webp", b"new"))

    assert board.articles.get(article_id).media_paths == ["article_fresh.webp"]
    assert (upload_dir / "article_fresh.webp").read_bytes() == b"new"


def test_save_with_empty_upload_keeps_media(board, published, make_upload):
    board.edits.save(published, PASSWORD, "T2", "B2", make_upload("empty.png", b""))
    assert board.articles.get(published).media_paths == ["article_cat.png"]


def test_save_with_wrong_password(board, published, make_upload, upload_dir):
    with pytest.raises(Unauthorized):
        board.edits.save(published, "wrong", "T2", "B2", make_upload("fresh.png"))

    assert board.articles.get(published).title == "Title"
    assert "article_fresh.png" not in uploaded_files(upload_dir)


def test_save_rejects_empty_fields_before_writing_media(board, published, make_upload, upload_dir):
    with pytest.raises(ValidationError):
        board.edits.save(published, PASSWORD, "", "B2", make_upload("fresh.png"))

    assert "article_fresh.png" not in uploaded_files(upload_dir)
    assert board.articles.get(published).media_paths == ["article_cat.png"]


def test_save_rejects_unsupported_media(board, published, make_upload):
    with pytest.raises(ValidationError):
        board.edits.save(published, PASSWORD, "T2", "B2", make_upload("virus.exe"))
    assert board.articles.get(published).title == "Title"


def test_save_missing_article_writes_nothing(board, make_upload, upload_dir):
    with pytest.raises(NotFound):
        board.edits.save(404, PASSWORD, "T2", "B2", make_upload("fresh.png"))
    assert uploaded_files(upload_dir) == []


def test_handle_dispatches_on_mode(board, published):
    confirmation = board.edits.handle(published, "check", PASSWORD)
    assert isinstance(confirmation, EditConfirmation)

    result = board.edits.handle(
        published, "save", confirmation.password, title="T2", body="B2"
    )
    assert result == published
    assert board.articles.get(published).title == "T2"


def test_handle_unknown_mode(board, published):
    with pytest.raises(InvalidRequest):
        board.edits.handle(published, "publish", PASSWORD)


def test_handle_checks_password_before_mode(board, published):
    with pytest.raises(Unauthorized):
        board.edits.handle(published, "publish", "wrong")


# ===== Deleting =====
def test_delete_article_requires_password(board, published):
    with pytest.raises(Unauthorized):
        board.deletions.delete_article(published, "wrong")
    assert board.articles.get(published).title == "Title"


def test_delete_article(board, published):
    board.publishing.comment(published, "doomed")

    board.deletions.delete_article(published, PASSWORD)

    with pytest.raises(NotFound):
        board.articles.get(published)
    assert board.comments.list_for_article(published) == []


def test_delete_comment_resolves_redirect_target(board, published):
    comment_id = board.publishing.comment(published, "bye")

    assert board.deletions.delete_comment(comment_id, PASSWORD) == published


def test_delete_comment_requires_password(board, published):
    comment_id = board.publishing.comment(published, "stays")

    with pytest.raises(Unauthorized):
        board.deletions.delete_comment(comment_id, "wrong")
    assert board.comments.list_for_article(published)[0].text == "stays"


# ===== Media failures and names =====
@pytest.fixture
def broken_store(board, monkeypatch):
    def fail(suggested_name, data):
        raise StorageWriteError(f"Failed to write media {suggested_name}")

    monkeypatch.setattr(board.media_store, "store", fail)


def test_publish_after_storage_failure_creates_nothing(board, make_upload, broken_store):
    with pytest.raises(StorageWriteError):
        board.publishing.publish("Title", "Body", [make_upload("cat.png")])

    assert board.articles.list() == []


def test_save_after_storage_failure_keeps_article(board, published, make_upload, clock, monkeypatch):
    before = board.articles.get(published).bump_time
    clock.advance(60)

    def fail(suggested_name, data):
        raise StorageWriteError("disk full")

    monkeypatch.setattr(board.media_store, "store", fail)

    with pytest.raises(StorageWriteError):
        board.edits.save(published, PASSWORD, "T2", "B2", make_upload("fresh.png"))

    article = board.articles.get(published)
    assert (article.title, article.body) == ("Title", "Body")
    assert article.media_paths == ["article_cat.png"]
    assert article.bump_time == before


def test_non_ascii_uploads_do_not_share_media(board, make_upload, upload_dir):
    first = board.publishing.publish("A", "Body", [make_upload("кот.png", b"cat")])
    second = board.publishing.publish("B", "Body", [make_upload("собака.png", b"dog")])
    video = board.publishing.publish("V", "Body", [make_upload("видео.mp4", b"film")])

    first_media = board.articles.get(first).media_paths
    second_media = board.articles.get(second).media_paths
    assert first_media != second_media
    assert (upload_dir / first_media[0]).read_bytes() == b"cat"
    assert (upload_dir / second_media[0]).read_bytes() == b"dog"
    assert board.articles.get(video).media_paths[0].endswith(".mp4")


def test_upload_whose_stored_name_loses_extension_is_rejected(board, make_upload, upload_dir):
    with pytest.raises(ValidationError):
        board.publishing.publish("Title", "Body", [make_upload("..png")])
    assert uploaded_files(upload_dir) == []
