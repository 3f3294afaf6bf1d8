"""Unit tests for storefront.services.storage: naming, local disk backend, S3 backend, selection."""

import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from storefront.core.errors import StorageUnavailableError
from storefront.services.storage import (
    ImageUpload,
    LocalStorageBackend,
    S3StorageBackend,
    build_storage_backend,
    generate_object_name,
    key_from_url,
)


def _upload(name: str = "photo.png", data: bytes = b"png-bytes") -> ImageUpload:
    return ImageUpload(filename=name, content_type="image/png", data=data)


def _client_error(op: str) -> ClientError:
    return ClientError({"Error": {"Code": "500", "Message": "boom"}}, op)


class TestGenerateObjectName(unittest.TestCase):
    def test_keeps_extension_and_sanitizes(self) -> None:
        name = generate_object_name("my summer photo!.JPG")
        self.assertTrue(name.startswith("product-"))
        self.assertTrue(name.endswith("-my-summer-photo-.JPG"))

    def test_strips_directories(self) -> None:
        name = generate_object_name("../../etc/passwd.png")
        self.assertNotIn("/", name)
        self.assertTrue(name.endswith("-passwd.png"))

    def test_unique(self) -> None:
        names = {generate_object_name("a.png") for _ in range(50)}
        self.assertEqual(len(names), 50)


class TestKeyFromUrl(unittest.TestCase):
    def test_parses_key(self) -> None:
        url = "https://bucket.s3.us-east-1.amazonaws.com/products/product-1-2-a.png"
        self.assertEqual(key_from_url(url), "products/product-1-2-a.png")

    def test_invalid(self) -> None:
        self.assertIsNone(key_from_url(""))
        self.assertIsNone(key_from_url("products/no-scheme.png"))
        self.assertIsNone(key_from_url("https://bucket.example.com/"))


class TestLocalStorageBackend(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name) / "uploads"
        self.backend = LocalStorageBackend(self.dir, "http://localhost:8000/")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_store_writes_files_and_builds_urls(self) -> None:
        stored = self.backend.store([_upload("a.png", b"one"), _upload("b.png", b"two")])
        self.assertEqual(len(stored), 2)
        for obj, data in zip(stored, (b"one", b"two")):
            self.assertEqual((self.dir / obj.storage_key).read_bytes(), data)
            self.assertEqual(obj.url, f"http://localhost:8000/uploads/{obj.storage_key}")

    def test_delete(self) -> None:
        [obj] = self.backend.store([_upload()])
        self.assertTrue(self.backend.delete(obj.storage_key))
        self.assertFalse((self.dir / obj.storage_key).exists())
        self.assertFalse(self.backend.delete(obj.storage_key))

    def test_delete_refuses_paths(self) -> None:
        self.assertFalse(self.backend.delete("../secret.png"))
        self.assertFalse(self.backend.delete(""))

    def test_delete_many_counts_removed(self) -> None:
        stored = self.backend.store([_upload(), _upload()])
        keys = [s.storage_key for s in stored] + ["product-missing.png"]
        self.assertEqual(self.backend.delete_many(keys), 2)

    def test_write_failure_cleans_up_and_raises(self) -> None:
        calls = {"n": 0}
        real_write = Path.write_bytes

        def flaky_write(path: Path, data: bytes) -> int:
            calls["n"] += 1
            if calls["n"] == 2:
                raise OSError("disk full")
            return real_write(path, data)

        with patch.object(Path, "write_bytes", flaky_write):
            with self.assertRaises(StorageUnavailableError):
                self.backend.store([_upload(), _upload()])
        self.assertEqual(list(self.dir.iterdir()), [])


class TestS3StorageBackend(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.backend = S3StorageBackend("my-bucket", "eu-west-1", client=self.client)

    def test_store_puts_public_objects(self) -> None:
        [obj] = self.backend.store([_upload("cat.png", b"meow")])
        self.assertTrue(obj.storage_key.startswith("products/product-"))
        self.assertEqual(
            obj.url, f"https://my-bucket.s3.eu-west-1.amazonaws.com/{obj.storage_key}"
        )
        kwargs = self.client.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "my-bucket")
        self.assertEqual(kwargs["Key"], obj.storage_key)
        self.assertEqual(kwargs["Body"], b"meow")
        self.assertEqual(kwargs["ContentType"], "image/png")
        self.assertEqual(kwargs["ACL"], "public-read")

    def test_store_failure_removes_earlier_objects(self) -> None:
        self.client.put_object.side_effect = [None, _client_error("PutObject")]
        self.client.delete_objects.return_value = {"Deleted": [{"Key": "k"}]}
        with self.assertRaises(StorageUnavailableError):
            self.backend.store([_upload(), _upload()])
        deleted = self.client.delete_objects.call_args.kwargs["Delete"]["Objects"]
        self.assertEqual(len(deleted), 1)

    def test_delete_accepts_key_or_url(self) -> None:
        self.assertTrue(self.backend.delete("products/a.png"))
        self.client.delete_object.assert_called_with(Bucket="my-bucket", Key="products/a.png")
        self.assertTrue(
            self.backend.delete("https://my-bucket.s3.eu-west-1.amazonaws.com/products/b.png")
        )
        self.client.delete_object.assert_called_with(Bucket="my-bucket", Key="products/b.png")

    def test_delete_error_returns_false(self) -> None:
        self.client.delete_object.side_effect = _client_error("DeleteObject")
        self.assertFalse(self.backend.delete("products/a.png"))

    def test_delete_many(self) -> None:
        self.client.delete_objects.return_value = {
            "Deleted": [{"Key": "products/a.png"}],
            "Errors": [{"Key": "products/b.png", "Message": "denied"}],
        }
        self.assertEqual(self.backend.delete_many(["products/a.png", "products/b.png"]), 1)
        self.assertEqual(self.backend.delete_many([]), 0)

    def test_delete_many_error_returns_zero(self) -> None:
        self.client.delete_objects.side_effect = _client_error("DeleteObjects")
        self.assertEqual(self.backend.delete_many(["products/a.png"]), 0)


class TestBuildStorageBackend(unittest.TestCase):
    def test_local(self) -> None:
        settings = MagicMock()
        settings.STORAGE_BACKEND = "local"
        settings.UPLOAD_DIR = "/tmp/x"
        settings.PUBLIC_BASE_URL = "http://api.example.com"
        backend = build_storage_backend(settings)
        self.assertIsInstance(backend, LocalStorageBackend)
        self.assertEqual(backend.url_for("f.png"), "http://api.example.com/uploads/f.png")

    @patch("storefront.services.storage.boto3.client")
    def test_s3(self, mock_client: MagicMock) -> None:
        settings = MagicMock()
        settings.STORAGE_BACKEND = "s3"
        settings.S3_BUCKET_NAME = "bucket"
        settings.AWS_REGION = "us-east-1"
        settings.AWS_ACCESS_KEY_ID = "id"
        settings.AWS_SECRET_ACCESS_KEY = None
        backend = build_storage_backend(settings)
        self.assertIsInstance(backend, S3StorageBackend)
        self.assertIs(backend.client, mock_client.return_value)
        mock_client.assert_called_once_with(
            "s3",
            region_name="us-east-1",
            aws_access_key_id="id",
            aws_secret_access_key=None,
        )


if __name__ == "__main__":
    unittest.main()
