from core.models.upload import UploadedFile


def test_length_is_data_size() -> None:
    upload = UploadedFile(file_name="a.jpg", content_type="image/jpeg", data=b"12345")
    assert upload.length == 5


def test_defaults_are_empty() -> None:
    upload = UploadedFile()

    assert upload.file_name == ""
    assert upload.content_type == ""
    assert upload.length == 0
