"""
Test video write validation (create / partial update)
"""
import pytest

from flix.features.videos.validation import (
    VideoValidationError,
    validate_thumbnail,
    validate_video_create,
    validate_video_file,
    validate_video_submission,
    validate_video_update,
)


def form(**overrides):
    data = {
        "title": "  Sintel  ",
        "genre": "Fantasy",
        "description": "A girl and her dragon",
        "duration": "888",
        "year": "2010",
        "is_featured": "0",
    }
    data.update(overrides)
    return data


def test_create_ok(jpeg_bytes, mp4_bytes):
    sub = validate_video_submission(form(), thumbnail=jpeg_bytes, video=mp4_bytes)

    assert sub.fields == {
        "title": "Sintel",
        "genre": "Fantasy",
        "description": "A girl and her dragon",
        "duration": 888,
        "year": 2010,
        "is_featured": False,
    }
    assert sub.thumbnail.mime == "image/jpeg"
    assert sub.thumbnail.ext == ".jpg"
    assert sub.video.mime == "video/mp4"
    assert sub.video.size == len(mp4_bytes)


@pytest.mark.parametrize("raw, expected", [("1", True), ("0", False), ("true", True), (True, True)])
def test_is_featured_accepts_form_values(raw, expected, jpeg_bytes, mp4_bytes):
    sub = validate_video_submission(form(is_featured=raw), thumbnail=jpeg_bytes, video=mp4_bytes)
    assert sub.fields["is_featured"] is expected


def test_create_empty_description_is_none(jpeg_bytes, mp4_bytes):
    sub = validate_video_submission(form(description="   "), thumbnail=jpeg_bytes, video=mp4_bytes)
    assert sub.fields["description"] is None


def test_create_requires_fields_and_files():
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission({"title": "Only a title"})

    errors = exc.value.errors
    assert set(errors) == {"genre", "duration", "year", "thumbnail", "video"}
    assert errors["thumbnail"] == ["Field required"]
    assert errors["video"] == ["Field required"]


def test_create_reports_every_invalid_field(jpeg_bytes, mp4_bytes):
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission(
            form(title="", duration="0", year="1800"),
            thumbnail=jpeg_bytes,
            video=mp4_bytes,
        )
    assert set(exc.value.errors) == {"title", "duration", "year"}


def test_create_rejects_non_numeric_year(jpeg_bytes, mp4_bytes):
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission(form(year="abc"), thumbnail=jpeg_bytes, video=mp4_bytes)
    assert "year" in exc.value.errors


def test_year_upper_bound(jpeg_bytes, mp4_bytes):
    validate_video_submission(form(year="2030"), thumbnail=jpeg_bytes, video=mp4_bytes)
    with pytest.raises(VideoValidationError):
        validate_video_submission(form(year="2031"), thumbnail=jpeg_bytes, video=mp4_bytes)


def test_create_rejects_swapped_files(jpeg_bytes, mp4_bytes):
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission(form(), thumbnail=mp4_bytes, video=jpeg_bytes)

    errors = exc.value.errors
    assert errors["thumbnail"] == ["Type non autorisé: video/mp4"]
    assert errors["video"] == ["Type non autorisé: image/jpeg"]


def test_create_rejects_empty_file(mp4_bytes):
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission(form(), thumbnail=b"", video=mp4_bytes)
    assert exc.value.errors == {"thumbnail": ["Fichier vide"]}


def test_thumbnail_size_limit(jpeg_bytes, mp4_bytes):
    big = jpeg_bytes + b"\x00" * (4 * 1024 * 1024)
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission(form(), thumbnail=big, video=mp4_bytes)
    assert exc.value.errors == {"thumbnail": ["Taille invalide (max 4 MB)"]}


# -----------------------------
# Partial (update)
# -----------------------------
def test_partial_keeps_only_provided_fields():
    sub = validate_video_submission({"title": "New title", "genre": None}, partial=True)
    assert sub.fields == {"title": "New title"}
    assert sub.thumbnail is None
    assert sub.video is None


def test_partial_ignores_blank_values_but_clears_description():
    sub = validate_video_submission({"title": "", "year": " ", "description": ""}, partial=True)
    assert sub.fields == {"description": None}


def test_partial_still_validates_values():
    with pytest.raises(VideoValidationError) as exc:
        validate_video_submission({"duration": "-5"}, partial=True)
    assert list(exc.value.errors) == ["duration"]


def test_partial_with_file_only(png_bytes):
    sub = validate_video_submission({}, thumbnail=png_bytes, partial=True)
    assert sub.fields == {}
    assert sub.thumbnail.mime == "image/png"


def test_shortcuts(jpeg_bytes, mp4_bytes):
    assert validate_video_create(form(), thumbnail=jpeg_bytes, video=mp4_bytes).fields["year"] == 2010
    assert validate_video_update({"year": "2012"}).fields == {"year": 2012}
    assert validate_thumbnail(jpeg_bytes).mime == "image/jpeg"
    assert validate_video_file(mp4_bytes).ext == ".mp4"

    with pytest.raises(VideoValidationError) as exc:
        validate_video_file(jpeg_bytes)
    assert list(exc.value.errors) == ["video"]


def test_submission_reports_both_file_errors(jpeg_bytes, mp4_bytes):
    with pytest.raises(VideoValidationError) as exc:
        validate_video_update({}, thumbnail=mp4_bytes, video=jpeg_bytes)
    assert set(exc.value.errors) == {"thumbnail", "video"}
    assert all(len(messages) == 1 for messages in exc.value.errors.values())
