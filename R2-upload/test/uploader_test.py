"""
Tests for the host-facing Uploader.
"""

import asyncio
import os
import sys
import tempfile
import unittest
from unittest.mock import Mock

# Add the parent directory to Python path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cli.uploader import Uploader
from common.config_source import DictConfigurationSource
from persistence.record import UploadRequest, UploadResult
from systems.base import ExistenceCheck
from fakes import FakeStore, MemoryFilesystem


class TestUploader(unittest.TestCase):
    """Test cases for Uploader class."""

    def setUp(self):
        """Set up test fixtures."""
        self.config = DictConfigurationSource({
            'account_id': 'acct',
            'bucket': 'attachments',
            'access_domain': 'cdn.example.com',
            'upload_path': 'usr/uploads',
        })
        self.store = FakeStore()
        self.factory = Mock(return_value=self.store)
        self.fs = MemoryFilesystem()
        self.uploader = Uploader(self.config, storage_factory=self.factory, filesystem=self.fs)

    def test_upload_host_mapping(self):
        """Test upload of a host file mapping with in-memory bytes."""
        result = asyncio.run(self.uploader.upload({
            'name': 'Holiday.JPG',
            'bytes': b'\xff\xd8\xff',
            'size': 3,
        }))

        self.assertIsInstance(result, UploadResult)
        self.assertRegex(result.path, r"^usr/uploads/\d{4}/\d{2}/\d+\.jpg$")
        self.assertEqual(result.to_dict(), {
            'name': 'Holiday.JPG',
            'path': result.path,
            'size': 3,
            'type': 'jpg',
            'mime': 'image/jpeg',
        })
        self.factory.assert_called_once_with(self.config)
        self.assertEqual(self.store.puts[0]['key'], result.path)
        self.assertEqual(self.store.checked, [result.path])

    def test_empty_name_is_rejected(self):
        result = asyncio.run(self.uploader.upload(UploadRequest("", b"data")))
        self.assertIsNone(result)
        self.factory.assert_not_called()

    def test_disallowed_type_is_rejected(self):
        result = asyncio.run(self.uploader.upload(UploadRequest("../../evil.php", b"<?php")))
        self.assertIsNone(result)
        self.factory.assert_not_called()

    def test_missing_extension_is_rejected(self):
        result = asyncio.run(self.uploader.upload(UploadRequest("README", b"text")))
        self.assertIsNone(result)

    def test_missing_source_is_rejected(self):
        result = asyncio.run(self.uploader.upload({'name': 'a.pdf'}))
        self.assertIsNone(result)
        self.factory.assert_not_called()

    def test_missing_temp_file_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            result = asyncio.run(self.uploader.upload(
                UploadRequest("a.pdf", os.path.join(tmp, "gone"))
            ))
        self.assertIsNone(result)

    def test_allow_all_types(self):
        self.config.values['allowed_extensions'] = '*'
        result = asyncio.run(self.uploader.upload(UploadRequest("../../evil.php", b"<?php")))

        self.assertIsNotNone(result)
        self.assertEqual(result.type, 'php')
        self.assertNotIn('evil', result.path)

    def test_custom_allow_list(self):
        self.config.values['allowed_extensions'] = 'svg, .PSD'
        self.assertTrue(self.uploader.is_allowed_type('svg'))
        self.assertTrue(self.uploader.is_allowed_type('psd'))
        self.assertFalse(self.uploader.is_allowed_type('pdf'))

    def test_remote_failure(self):
        self.store.put_result = False
        result = asyncio.run(self.uploader.upload(UploadRequest("a.pdf", b"x")))

        self.assertIsNone(result)
        self.assertEqual(self.fs.mkdir_calls, [])

    def test_collisions_use_retry_budget(self):
        self.store.exists_result = ExistenceCheck.EXISTS
        result = asyncio.run(self.uploader.upload(UploadRequest("a.pdf", b"x")))

        self.assertIsNotNone(result)
        self.assertEqual(len(self.store.checked), 10)
        self.assertEqual(result.path, self.store.checked[-1])

    def test_upload_from_temp_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "php4Xk2")
            with open(path, "wb") as f:
                f.write(b"%PDF")

            result = asyncio.run(self.uploader.upload({'name': 'doc.pdf', 'tmp_name': path}))

        self.assertIsNotNone(result)
        self.assertEqual(result.size, 4)
        self.assertEqual(self.store.puts[0]['body'], b"%PDF")
        self.assertEqual(self.fs.moves[0][0], path)

    def test_bits_string_is_content(self):
        """Test that a str in 'bits' is uploaded as file contents."""
        result = asyncio.run(self.uploader.upload({'name': 'a.txt', 'bits': 'hello world'}))

        self.assertIsNotNone(result)
        self.assertEqual(result.size, 11)
        self.assertEqual(self.store.puts[0]['body'], b"hello world")
        self.assertEqual(self.fs.moves, [])
        self.assertEqual(self.fs.writes[0][1], b"hello world")

    def test_bits_bytes_is_content(self):
        result = asyncio.run(self.uploader.upload({'name': 'a.txt', 'bits': b"\x00\x01"}))

        self.assertIsNotNone(result)
        self.assertEqual(self.store.puts[0]['body'], b"\x00\x01")

    def test_bits_naming_a_server_file_is_not_read(self):
        """Test that content fields never open or move a file on the server."""
        with tempfile.TemporaryDirectory() as tmp:
            secret = os.path.join(tmp, "secret")
            with open(secret, "wb") as f:
                f.write(b"SERVER SECRET")

            result = asyncio.run(self.uploader.upload({'name': 'a.txt', 'bits': secret}))

            self.assertTrue(os.path.exists(secret))

        self.assertIsNotNone(result)
        self.assertEqual(self.store.puts[0]['body'], secret.encode("utf-8"))
        self.assertEqual(self.fs.moves, [])

    def test_tmp_name_takes_precedence(self):
        request = UploadRequest.from_host_file({'name': 'a.txt', 'tmp_name': '/tmp/php1', 'bits': 'x'})
        self.assertTrue(request.is_path)
        self.assertEqual(request.source, '/tmp/php1')

    def test_attachment_url(self):
        self.assertEqual(
            self.uploader.attachment_url("usr/uploads/2024/03/1.png"),
            "https://cdn.example.com/usr/uploads/2024/03/1.png",
        )
        self.assertEqual(
            self.uploader.attachment_url("/usr/uploads/2024/03/1.png"),
            "https://cdn.example.com/usr/uploads/2024/03/1.png",
        )

    def test_verify(self):
        async def verify_connection():
            return True

        self.store.verify_connection = verify_connection
        self.assertTrue(asyncio.run(self.uploader.verify()))


if __name__ == '__main__':
    unittest.main()
