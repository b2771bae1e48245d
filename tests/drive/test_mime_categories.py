import pytest

from app.packages.drive.utils.mime_categories import FileCategory, categorize, matches_category


@pytest.mark.parametrize(
    ("mime", "expected"),
    [
        ("image/png", FileCategory.IMAGE),
        ("image/svg+xml", FileCategory.IMAGE),
        ("video/mp4", FileCategory.VIDEO),
        ("audio/mpeg", FileCategory.AUDIO),
        ("text/plain", FileCategory.DOCUMENT),
        ("text/markdown; charset=utf-8", FileCategory.DOCUMENT),
        ("application/pdf", FileCategory.DOCUMENT),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", FileCategory.DOCUMENT),
        ("application/zip", FileCategory.ARCHIVE),
        ("application/x-tar", FileCategory.ARCHIVE),
        ("application/x-rar-compressed", FileCategory.ARCHIVE),
        ("application/x-custom-compressed", FileCategory.ARCHIVE),
        ("application/json", FileCategory.OTHER),
        ("application/octet-stream", FileCategory.OTHER),
        (None, FileCategory.OTHER),
    ],
)
def test_categorize(mime, expected):
    assert categorize(mime) is expected


def test_folders_only_match_folder_category():
    assert categorize(None, is_folder=True) is FileCategory.FOLDER
    assert matches_category(None, True, "folder")
    assert not matches_category("image/png", False, "folder")
    assert not matches_category(None, True, "image")


def test_all_matches_everything():
    assert matches_category("application/json", False, "all")
    assert matches_category(None, True, None)
