import io
import unittest
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from botocore.response import StreamingBody

from portfolio.storage import IMMUTABLE_CACHE_CONTROL, InMemoryStorageClient, S3StorageClient


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "GetObject")


class InMemoryStorageClientTests(unittest.TestCase):
    def test_put_and_get(self):
        storage = InMemoryStorageClient()
        storage.put_object("images/a.jpg", b"abc", "image/jpeg", IMMUTABLE_CACHE_CONTROL)
        stored = storage.get_object("images/a.jpg")
        self.assertEqual(stored.read(), b"abc")
        self.assertEqual(stored.content_type, "image/jpeg")
        self.assertEqual(stored.cache_control, IMMUTABLE_CACHE_CONTROL)
        self.assertTrue(stored.etag.startswith('"'))
        self.assertEqual(storage.get_bytes("images/a.jpg"), b"abc")

    def test_missing(self):
        storage = InMemoryStorageClient()
        self.assertIsNone(storage.get_object("nope"))
        self.assertIsNone(storage.get_bytes("nope"))


class S3StorageClientTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("portfolio.storage.boto3")
        self.boto3 = patcher.start()
        self.addCleanup(patcher.stop)
        self.s3 = MagicMock()
        self.boto3.client.return_value = self.s3
        self.storage = S3StorageClient(
            bucket="site",
            region="auto",
            endpoint="https://account.r2.example",
            access_key_id="key",
            secret_access_key="secret",
        )

    def test_client_configuration(self):
        kwargs = self.boto3.client.call_args.kwargs
        self.assertEqual(self.boto3.client.call_args.args, ("s3",))
        self.assertEqual(kwargs["endpoint_url"], "https://account.r2.example")
        self.assertEqual(kwargs["aws_access_key_id"], "key")

    def test_put_object_passes_cache_control(self):
        self.storage.put_object("images/p/a.jpg", b"x", "image/jpeg", IMMUTABLE_CACHE_CONTROL)
        self.s3.put_object.assert_called_once_with(
            Bucket="site",
            Key="images/p/a.jpg",
            Body=b"x",
            ContentType="image/jpeg",
            CacheControl=IMMUTABLE_CACHE_CONTROL,
        )

    def test_put_object_without_cache_control(self):
        self.storage.put_object("data/projects.json", b"[]", "application/json")
        self.assertNotIn("CacheControl", self.s3.put_object.call_args.kwargs)

    def test_get_object(self):
        self.s3.get_object.return_value = {
            "Body": StreamingBody(io.BytesIO(b"hello"), 5),
            "ContentType": "image/png",
            "ETag": '"abc"',
        }
        self.assertEqual(self.storage.get_bytes("images/p/a.png"), b"hello")
        self.s3.get_object.assert_called_with(Bucket="site", Key="images/p/a.png")

    def test_missing_key_returns_none(self):
        self.s3.get_object.side_effect = _client_error("NoSuchKey")
        self.assertIsNone(self.storage.get_object("data/projects.json"))

    def test_other_errors_propagate(self):
        self.s3.get_object.side_effect = _client_error("AccessDenied")
        with self.assertRaises(ClientError):
            self.storage.get_object("data/projects.json")


if __name__ == "__main__":
    unittest.main()
